from flask import Blueprint
from flask_jwt_extended import jwt_required

from rota_api.common.auth import requires_admin
from rota_api.common.http import ok
from rota_api.common.params import body
from rota_api.repository import Repository
from rota_api.services import directory

bp = Blueprint("leave_types", __name__, url_prefix="/api/v1/leave-types")


def _row(lt):
    return {"id": lt.id, "name": lt.name, "requires_approval": lt.requires_approval,
            "description": lt.description}


# every signed-in user needs the list to file leave
@bp.get("")
@jwt_required()
def list_leave_types():
    return ok([_row(lt) for lt in directory.list_leave_types(Repository())])


@bp.post("")
@requires_admin()
def create_leave_type():
    d = body()
    lt = directory.save_leave_type(Repository(), d.get("name"), d.get("requires_approval", True),
                                   d.get("description"))
    return ok(_row(lt), status=201)


@bp.put("/<int:type_id>")
@requires_admin()
def update_leave_type(type_id: int):
    d = body()
    lt = directory.save_leave_type(Repository(), d.get("name"), d.get("requires_approval", True),
                                   d.get("description"), type_id=type_id)
    return ok(_row(lt))


@bp.delete("/<int:type_id>")
@requires_admin()
def delete_leave_type(type_id: int):
    directory.delete_leave_type(Repository(), type_id)
    return ok({"deleted": type_id})
