# rota_api/services/access_scope.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rota_api.common.errors import PermissionDenied
from rota_api.models.user import User
from rota_api.repository import Repository

# read_scope() result meaning "caller may see nothing"
DENY = object()


@dataclass(frozen=True)
class Actor:
    user_id: int
    is_admin: bool
    employee_id: Optional[int] = None


def resolve_employee_id(repo: Repository, user_id: int) -> Optional[int]:
    user = repo.get(User, user_id)
    return user.employee_id if user else None


def read_scope(actor: Actor, employee_id: Optional[int] = None):
    """
    Effective employee filter for a leave read.

    Admins get whatever they asked for (None = everyone). Everybody else is
    pinned to their own employee id; asking for someone else, or having no
    linked employee, yields DENY so callers can answer empty / not-found
    without confirming the record exists.
    """
    if actor.is_admin:
        return employee_id
    if actor.employee_id is None:
        return DENY
    if employee_id is not None and employee_id != actor.employee_id:
        return DENY
    return actor.employee_id


def can_see_employee(actor: Actor, employee_id: int) -> bool:
    return actor.is_admin or (actor.employee_id is not None and actor.employee_id == employee_id)


def ensure_can_create(actor: Actor, employee_id: int):
    if actor.is_admin:
        return
    if actor.employee_id is None:
        raise PermissionDenied("User is not linked to an employee record.")
    if employee_id != actor.employee_id:
        raise PermissionDenied("You can only create leave requests for yourself.")


def ensure_can_modify(actor: Actor, owner_employee_id: int):
    if not can_see_employee(actor, owner_employee_id):
        raise PermissionDenied("User does not have permission to change this leave request.")


def ensure_privileged(actor: Actor):
    if not actor.is_admin:
        raise PermissionDenied("Only administrators can approve or reject leave requests.")
