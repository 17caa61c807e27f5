from flask import Blueprint

from rota_api.common.auth import requires_admin
from rota_api.common.http import ok
from rota_api.common.params import as_int, body, require_fields
from rota_api.models.employee import Employee
from rota_api.models.security import Role
from rota_api.repository import Repository
from rota_api.services import directory

bp = Blueprint("users", __name__, url_prefix="/api/v1/users")
roles_bp = Blueprint("roles", __name__, url_prefix="/api/v1/roles")


def _rows(repo: Repository, users):
    roles = repo.by_ids(Role, {u.role_id for u in users})
    employees = repo.by_ids(Employee, {u.employee_id for u in users})
    return [{
        "id": u.id,
        "username": u.username,
        "employee_id": u.employee_id,
        "employee_name": employees[u.employee_id].full_name if u.employee_id in employees else None,
        "role_id": u.role_id,
        "role_name": roles[u.role_id].name if u.role_id in roles else None,
        "is_active": u.is_active,
        "last_login": u.last_login,
    } for u in users]


@bp.get("")
@requires_admin()
def list_users():
    repo = Repository()
    return ok(_rows(repo, directory.list_users(repo)))


@bp.put("/<int:user_id>/role")
@requires_admin()
def set_role(user_id: int):
    d = body()
    require_fields(d, "role_id")
    repo = Repository()
    u = directory.set_user_role(repo, user_id, as_int(d["role_id"], "role_id"))
    return ok(_rows(repo, [u])[0])


@bp.put("/<int:user_id>/status")
@requires_admin()
def set_status(user_id: int):
    d = body()
    require_fields(d, "is_active")
    repo = Repository()
    u = directory.set_user_status(repo, user_id, bool(d["is_active"]))
    return ok(_rows(repo, [u])[0])


@roles_bp.get("")
@requires_admin()
def list_roles():
    return ok([{
        "id": r.id,
        "name": r.name,
        "description": r.description,
        "is_admin": r.is_admin,
        "permissions": sorted(r.permission_codes()),
    } for r in directory.list_roles(Repository())])
