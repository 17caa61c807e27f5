from flask import Blueprint, request

from rota_api.common.auth import requires_admin, requires_perms
from rota_api.common.http import ok
from rota_api.common.params import arg_int, as_int, body
from rota_api.models.employee import Team
from rota_api.repository import Repository
from rota_api.services import directory

bp = Blueprint("employees", __name__, url_prefix="/api/v1/employees")

EDITABLE = ("first_name", "last_name", "email", "phone", "team_id", "is_active")


def _rows(repo: Repository, items):
    teams = repo.by_ids(Team, {e.team_id for e in items})
    return [{
        "id": e.id,
        "first_name": e.first_name,
        "last_name": e.last_name,
        "full_name": e.full_name,
        "email": e.email,
        "phone": e.phone,
        "team_id": e.team_id,
        "team_name": teams[e.team_id].name if e.team_id in teams else None,
        "is_active": e.is_active,
    } for e in items]


def _data():
    d = body()
    out = {k: d[k] for k in EDITABLE if k in d}
    if "team_id" in out:
        out["team_id"] = as_int(out["team_id"], "team_id")
    if "is_active" in out:
        out["is_active"] = bool(out["is_active"])
    return out


@bp.get("")
@requires_perms("rota.view")
def list_employees():
    repo = Repository()
    include_inactive = (request.args.get("include_inactive") or "").lower() in ("1", "true", "yes")
    items = directory.list_employees(repo, team_id=arg_int("team_id"), include_inactive=include_inactive)
    return ok(_rows(repo, items), count=len(items))


@bp.get("/<int:employee_id>")
@requires_perms("rota.view")
def get_employee(employee_id: int):
    repo = Repository()
    return ok(_rows(repo, [directory.get_employee(repo, employee_id)])[0])


@bp.post("")
@requires_admin()
def create_employee():
    repo = Repository()
    emp = directory.save_employee(repo, _data())
    return ok(_rows(repo, [emp])[0], status=201)


@bp.put("/<int:employee_id>")
@requires_admin()
def update_employee(employee_id: int):
    repo = Repository()
    emp = directory.save_employee(repo, _data(), employee_id=employee_id)
    return ok(_rows(repo, [emp])[0])


@bp.delete("/<int:employee_id>")
@requires_admin()
def deactivate_employee(employee_id: int):
    repo = Repository()
    emp = directory.deactivate_employee(repo, employee_id)
    return ok(_rows(repo, [emp])[0])
