from flask import Blueprint

from rota_api.common.auth import requires_admin, requires_perms
from rota_api.common.http import ok
from rota_api.common.params import body
from rota_api.repository import Repository
from rota_api.services import directory

bp = Blueprint("shift_types", __name__, url_prefix="/api/v1/shift-types")


def _row(st):
    return {"id": st.id, "name": st.name, "is_on_call": st.is_on_call, "description": st.description}


@bp.get("")
@requires_perms("rota.view")
def list_shift_types():
    return ok([_row(st) for st in directory.list_shift_types(Repository())])


@bp.post("")
@requires_admin()
def create_shift_type():
    d = body()
    st = directory.save_shift_type(Repository(), d.get("name"), bool(d.get("is_on_call")), d.get("description"))
    return ok(_row(st), status=201)


@bp.put("/<int:type_id>")
@requires_admin()
def update_shift_type(type_id: int):
    d = body()
    st = directory.save_shift_type(Repository(), d.get("name"), bool(d.get("is_on_call")), d.get("description"),
                                   type_id=type_id)
    return ok(_row(st))


@bp.delete("/<int:type_id>")
@requires_admin()
def delete_shift_type(type_id: int):
    directory.delete_shift_type(Repository(), type_id)
    return ok({"deleted": type_id})
