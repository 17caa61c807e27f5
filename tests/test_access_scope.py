import pytest

from factories import add_employee, add_leave, add_leave_type, add_role, add_user
from rota_api.common.errors import PermissionDenied
from rota_api.services import access_scope
from rota_api.services.access_scope import DENY, Actor
from rota_api.services.leave_service import LeaveRequestService


def test_read_scope_rules():
    admin = Actor(1, True)
    emp = Actor(2, False, employee_id=7)
    unlinked = Actor(3, False, employee_id=None)

    assert access_scope.read_scope(admin, None) is None
    assert access_scope.read_scope(admin, 8) == 8
    assert access_scope.read_scope(emp, None) == 7
    assert access_scope.read_scope(emp, 7) == 7
    assert access_scope.read_scope(emp, 8) is DENY
    assert access_scope.read_scope(unlinked, None) is DENY


def test_write_guards():
    emp = Actor(2, False, employee_id=7)
    access_scope.ensure_can_create(emp, 7)
    with pytest.raises(PermissionDenied):
        access_scope.ensure_can_create(emp, 8)
    with pytest.raises(PermissionDenied):
        access_scope.ensure_can_modify(emp, 8)
    with pytest.raises(PermissionDenied):
        access_scope.ensure_privileged(emp)
    access_scope.ensure_privileged(Actor(1, True))


def test_resolve_employee_id(session, repo):
    e = add_employee(session)
    u = add_user(session, e, add_role(session, "Employee"))
    assert access_scope.resolve_employee_id(repo, u.id) == e.id
    assert access_scope.resolve_employee_id(repo, 999) is None


def test_non_admin_lists_only_own_requests(session, repo):
    mine = add_employee(session, "Ann")
    theirs = add_employee(session, "Bob")
    lt = add_leave_type(session)
    own = add_leave(session, mine, lt, "2024-06-03T00:00", "2024-06-04T00:00")
    add_leave(session, theirs, lt, "2024-06-03T00:00", "2024-06-04T00:00")

    actor = Actor(user_id=10, is_admin=False, employee_id=mine.id)
    svc = LeaveRequestService(repo)
    assert [lr.id for lr in svc.list_requests(actor)] == [own.id]
    assert svc.list_requests(actor, employee_id=theirs.id) == []

    admin_view = svc.list_requests(Actor(user_id=1, is_admin=True))
    assert len(admin_view) == 2
