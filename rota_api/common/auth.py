# rota_api/common/auth.py
from __future__ import annotations

from functools import wraps

from flask_jwt_extended import get_jwt_identity, jwt_required

from rota_api.common.errors import APIError
from rota_api.common.http import fail
from rota_api.models.security import Role
from rota_api.models.user import User
from rota_api.repository import Repository
from rota_api.services.access_scope import Actor


class Unauthorized(APIError):
    code = "UNAUTHORIZED"
    status_code = 401


# ---------- helpers ----------

def _load_principal(repo: Repository):
    """(user, role) for the JWT identity, or (None, None) if the account is gone or disabled."""
    uid = get_jwt_identity()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        return None, None
    user = repo.get(User, uid)
    if user is None or not user.is_active:
        return None, None
    return user, repo.get(Role, user.role_id)


def current_actor(repo: Repository | None = None) -> Actor:
    """Identity record for the authenticated caller. Must run under @jwt_required."""
    user, role = _load_principal(repo or Repository())
    if user is None:
        raise Unauthorized("Unauthorized")
    return Actor(user_id=user.id, is_admin=bool(role and role.is_admin), employee_id=user.employee_id)


# ---------- decorators ----------

def requires_perms(*perm_codes: str):
    """
    Require that the current user's role grants ANY of the given permission
    codes (see models.security.PERMISSION_FLAGS). The Admin role always passes.
    Flags are read live from the database, so role edits apply immediately.
    """
    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            user, role = _load_principal(Repository())
            if user is None:
                return fail("Unauthorized", status=401)
            if role is not None and role.is_admin:
                return fn(*args, **kwargs)
            if perm_codes:
                granted = role.permission_codes() if role else set()
                if not any(c in granted for c in perm_codes):
                    return fail("Forbidden", status=403)
            return fn(*args, **kwargs)
        return inner
    return outer


def requires_admin():
    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            user, role = _load_principal(Repository())
            if user is None:
                return fail("Unauthorized", status=401)
            if role is None or not role.is_admin:
                return fail("Forbidden", status=403)
            return fn(*args, **kwargs)
        return inner
    return outer
