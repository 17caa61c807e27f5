from flask import Blueprint
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy import func

from rota_api.common.auth import current_actor, requires_admin
from rota_api.common.errors import ValidationError
from rota_api.common.http import ok, fail
from rota_api.common.params import as_int, body, require_fields
from rota_api.models.employee import Employee
from rota_api.models.security import Role
from rota_api.models.user import User
from rota_api.repository import Repository
from rota_api.services import directory
from rota_api.services.time_window import utcnow

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _user_payload(repo: Repository, u: User):
    role = repo.get(Role, u.role_id)
    emp = repo.get(Employee, u.employee_id)
    return {
        "id": u.id,
        "username": u.username,
        "employee_id": u.employee_id,
        "employee_name": emp.full_name if emp else None,
        "role": role.name if role else None,
        "is_admin": bool(role and role.is_admin),
        "permissions": sorted(role.permission_codes()) if role else [],
        "last_login": u.last_login,
    }


@bp.post("/login")
def login():
    d = body()
    username = (d.get("username") or "").strip()
    password = d.get("password") or ""
    repo = Repository()
    users = repo.find(User, func.lower(User.username) == username.lower())
    u = users[0] if users else None
    if not u or not u.check_password(password):
        return fail("Invalid credentials", status=401)
    if not u.is_active:
        return fail("Account is disabled", status=403)

    u.last_login = utcnow()
    repo.commit()

    role = repo.get(Role, u.role_id)
    claims = {"roles": [role.name] if role else [], "is_admin": bool(role and role.is_admin)}
    access = create_access_token(identity=str(u.id), additional_claims=claims)
    return ok({"access": access, "user": _user_payload(repo, u)})


@bp.post("/register")
@requires_admin()
def register():
    d = body()
    require_fields(d, "username", "password", "employee_id", "role_id")
    repo = Repository()
    u = directory.register_user(repo, d["username"], d["password"],
                                as_int(d["employee_id"], "employee_id"), as_int(d["role_id"], "role_id"))
    return ok(_user_payload(repo, u), status=201)


@bp.get("/me")
@jwt_required()
def me():
    repo = Repository()
    actor = current_actor(repo)
    return ok(_user_payload(repo, repo.get(User, actor.user_id)))


@bp.post("/change-password")
@jwt_required()
def change_password():
    d = body()
    require_fields(d, "current_password", "new_password")
    if len(d["new_password"]) < 6:
        raise ValidationError("New password must be at least 6 characters.")

    repo = Repository()
    actor = current_actor(repo)
    u = repo.get(User, actor.user_id)
    if not u.check_password(d["current_password"]):
        return fail("Current password is incorrect", status=400, code="BAD_PASSWORD")
    u.set_password(d["new_password"])
    repo.commit()
    return ok({"changed": True})
