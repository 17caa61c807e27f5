# rota_api/services/directory.py
"""
Master data around the scheduling engine: teams, employees, shift/leave
types, users and roles. Thin validation over the repository.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, update

from rota_api.common.errors import Conflict, InvalidReference, NotFound, ValidationError
from rota_api.models.employee import Employee, Team
from rota_api.models.leave import LeaveRequest, LeaveType
from rota_api.models.scheduling import Shift, ShiftType
from rota_api.models.security import Role
from rota_api.models.user import User
from rota_api.repository import Repository
from rota_api.services.time_window import utcnow

log = logging.getLogger(__name__)


def _require(repo: Repository, model, pk: int, label: str):
    obj = repo.get(model, pk)
    if obj is None:
        raise NotFound(f"{label} with ID {pk} not found.")
    return obj


def _name_taken(repo: Repository, model, name: str, exclude_id: Optional[int] = None) -> bool:
    criteria = [func.lower(model.name) == (name or "").strip().lower()]
    if exclude_id is not None:
        criteria.append(model.id != exclude_id)
    return repo.exists(model, *criteria)


def _clean_name(name: Optional[str], label: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError(f"{label} name is required.")
    return name


# ---------- teams ----------
def list_teams(repo: Repository) -> List[Team]:
    return repo.find(Team, order_by=(Team.name,))


def get_team(repo: Repository, team_id: int) -> Team:
    return _require(repo, Team, team_id, "Team")


def save_team(repo: Repository, name: str, description: Optional[str] = None,
              team_id: Optional[int] = None) -> Team:
    name = _clean_name(name, "Team")
    if _name_taken(repo, Team, name, exclude_id=team_id):
        raise Conflict(f"A team with the name '{name}' already exists.")
    team = get_team(repo, team_id) if team_id is not None else repo.add(Team())
    team.name = name
    team.description = description
    team.updated_at = utcnow()
    repo.commit()
    return team


def delete_team(repo: Repository, team_id: int) -> int:
    """Delete a team; members stay, with their team reference cleared. Returns members detached."""
    team = get_team(repo, team_id)
    result = repo.session.execute(
        update(Employee).where(Employee.team_id == team_id).values(team_id=None, updated_at=utcnow())
    )
    repo.remove(team)
    repo.commit()
    log.info("team %s deleted, %s members unassigned", team_id, result.rowcount)
    return result.rowcount


# ---------- employees ----------
def list_employees(repo: Repository, team_id: Optional[int] = None,
                   include_inactive: bool = False) -> List[Employee]:
    criteria = []
    if team_id is not None:
        criteria.append(Employee.team_id == team_id)
    if not include_inactive:
        criteria.append(Employee.is_active.is_(True))
    return repo.find(Employee, *criteria, order_by=(Employee.last_name, Employee.first_name))


def get_employee(repo: Repository, employee_id: int) -> Employee:
    return _require(repo, Employee, employee_id, "Employee")


def save_employee(repo: Repository, data: dict, employee_id: Optional[int] = None) -> Employee:
    team_id = data.get("team_id")
    if team_id is not None and repo.get(Team, team_id) is None:
        raise InvalidReference(f"Specified Team ID {team_id} does not exist.", payload={"field": "team_id"})

    names = {
        field: _clean_name(data.get(field), field.replace("_", " ").capitalize())
        for field in ("first_name", "last_name")
        if employee_id is None or field in data
    }
    emp = get_employee(repo, employee_id) if employee_id is not None else repo.add(Employee(is_active=True))
    for field, value in names.items():
        setattr(emp, field, value)
    for field in ("email", "phone", "team_id", "is_active"):
        if field in data:
            setattr(emp, field, data[field])
    emp.updated_at = utcnow()
    repo.commit()
    return emp


def deactivate_employee(repo: Repository, employee_id: int) -> Employee:
    """Soft delete: referenced rows (shifts, leave, users) keep pointing at the employee."""
    emp = get_employee(repo, employee_id)
    emp.is_active = False
    emp.updated_at = utcnow()
    repo.commit()
    return emp


# ---------- shift / leave types ----------
def list_shift_types(repo: Repository) -> List[ShiftType]:
    return repo.find(ShiftType, order_by=(ShiftType.name,))


def save_shift_type(repo: Repository, name: str, is_on_call: bool = False,
                    description: Optional[str] = None, type_id: Optional[int] = None) -> ShiftType:
    name = _clean_name(name, "Shift type")
    if _name_taken(repo, ShiftType, name, exclude_id=type_id):
        raise Conflict(f"A shift type with the name '{name}' already exists.")
    st = _require(repo, ShiftType, type_id, "ShiftType") if type_id is not None else repo.add(ShiftType())
    st.name = name
    st.is_on_call = bool(is_on_call)
    st.description = description
    repo.commit()
    return st


def delete_shift_type(repo: Repository, type_id: int) -> None:
    st = _require(repo, ShiftType, type_id, "ShiftType")
    if repo.exists(Shift, Shift.shift_type_id == type_id):
        raise Conflict("Cannot delete shift type: it is assigned to existing shifts.")
    repo.remove(st)
    repo.commit()


def list_leave_types(repo: Repository) -> List[LeaveType]:
    return repo.find(LeaveType, order_by=(LeaveType.name,))


def save_leave_type(repo: Repository, name: str, requires_approval: bool = True,
                    description: Optional[str] = None, type_id: Optional[int] = None) -> LeaveType:
    name = _clean_name(name, "Leave type")
    if _name_taken(repo, LeaveType, name, exclude_id=type_id):
        raise Conflict(f"A leave type with the name '{name}' already exists.")
    lt = _require(repo, LeaveType, type_id, "LeaveType") if type_id is not None else repo.add(LeaveType())
    lt.name = name
    lt.requires_approval = bool(requires_approval)
    lt.description = description
    repo.commit()
    return lt


def delete_leave_type(repo: Repository, type_id: int) -> None:
    lt = _require(repo, LeaveType, type_id, "LeaveType")
    if repo.exists(LeaveRequest, LeaveRequest.leave_type_id == type_id):
        raise Conflict("Cannot delete leave type: it is used by existing leave requests.")
    repo.remove(lt)
    repo.commit()


# ---------- users / roles ----------
def list_roles(repo: Repository) -> List[Role]:
    return repo.find(Role, order_by=(Role.name,))


def list_users(repo: Repository) -> List[User]:
    return repo.find(User, order_by=(User.username,))


def register_user(repo: Repository, username: str, password: str, employee_id: int, role_id: int) -> User:
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("username and password are required.")
    emp = repo.get(Employee, employee_id)
    if emp is None or not emp.is_active:
        raise InvalidReference(f"Active employee with ID {employee_id} not found.", payload={"field": "employee_id"})
    if repo.get(Role, role_id) is None:
        raise InvalidReference(f"Role with ID {role_id} not found.", payload={"field": "role_id"})
    if repo.exists(User, func.lower(User.username) == username.lower()):
        raise Conflict(f"Username '{username}' is already taken.")
    if repo.exists(User, User.employee_id == employee_id):
        raise Conflict(f"Employee {employee_id} already has a user account.")

    user = User(username=username, employee_id=employee_id, role_id=role_id, is_active=True)
    user.set_password(password)
    repo.add(user)
    repo.commit()
    return user


def set_user_role(repo: Repository, user_id: int, role_id: int) -> User:
    user = _require(repo, User, user_id, "User")
    if repo.get(Role, role_id) is None:
        raise InvalidReference(f"Role with ID {role_id} not found.", payload={"field": "role_id"})
    user.role_id = role_id
    repo.commit()
    return user


def set_user_status(repo: Repository, user_id: int, is_active: bool) -> User:
    user = _require(repo, User, user_id, "User")
    user.is_active = bool(is_active)
    repo.commit()
    return user
