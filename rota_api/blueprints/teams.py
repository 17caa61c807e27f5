from flask import Blueprint

from rota_api.common.auth import requires_admin, requires_perms
from rota_api.common.http import ok
from rota_api.common.params import body
from rota_api.models.employee import Team
from rota_api.repository import Repository
from rota_api.services import directory

bp = Blueprint("teams", __name__, url_prefix="/api/v1/teams")


def _row(t: Team):
    return {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "created_at": t.created_at,
        "updated_at": t.updated_at,
    }


@bp.get("")
@requires_perms("rota.view")
def list_teams():
    return ok([_row(t) for t in directory.list_teams(Repository())])


@bp.get("/<int:team_id>")
@requires_perms("rota.view")
def get_team(team_id: int):
    return ok(_row(directory.get_team(Repository(), team_id)))


@bp.post("")
@requires_admin()
def create_team():
    d = body()
    t = directory.save_team(Repository(), d.get("name"), d.get("description"))
    return ok(_row(t), status=201)


@bp.put("/<int:team_id>")
@requires_admin()
def update_team(team_id: int):
    d = body()
    t = directory.save_team(Repository(), d.get("name"), d.get("description"), team_id=team_id)
    return ok(_row(t))


@bp.delete("/<int:team_id>")
@requires_admin()
def delete_team(team_id: int):
    detached = directory.delete_team(Repository(), team_id)
    return ok({"deleted": team_id, "members_unassigned": detached})
