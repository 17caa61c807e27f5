import pytest

from factories import add_employee, add_leave, add_leave_type, dt
from rota_api.common.errors import Conflict, InvalidStateTransition, NotFound, PermissionDenied, ValidationError
from rota_api.models.leave import LeaveStatus
from rota_api.services import leave_status
from rota_api.services.access_scope import Actor
from rota_api.services.leave_service import LeaveRequestService

ADMIN = Actor(user_id=1, is_admin=True)


def test_transition_table():
    assert leave_status.can_transition(LeaveStatus.PENDING, LeaveStatus.APPROVED)
    assert leave_status.can_transition(LeaveStatus.APPROVED, LeaveStatus.CANCELLED)
    assert not leave_status.can_transition(LeaveStatus.APPROVED, LeaveStatus.REJECTED)
    assert not leave_status.can_transition(LeaveStatus.REJECTED, LeaveStatus.CANCELLED)
    assert not leave_status.can_transition(LeaveStatus.CANCELLED, LeaveStatus.PENDING)


def test_approve_sets_approver_fields(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr = add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00")

    out = LeaveRequestService(repo).update_status(ADMIN, lr.id, "approved", "enjoy")
    assert out.status == "Approved"
    assert out.approver_user_id == ADMIN.user_id
    assert out.approved_at is not None
    assert out.approver_notes == "enjoy"


def test_approve_over_existing_approved_leave_conflicts(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00", LeaveStatus.APPROVED)
    pending = add_leave(session, emp, lt, "2024-03-02T00:00", "2024-03-05T00:00")

    with pytest.raises(Conflict):
        LeaveRequestService(repo).update_status(ADMIN, pending.id, LeaveStatus.APPROVED)
    session.refresh(pending)
    assert pending.status == "Pending"


def test_reject_does_not_check_overlap(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00", LeaveStatus.APPROVED)
    pending = add_leave(session, emp, lt, "2024-03-02T00:00", "2024-03-05T00:00")
    out = LeaveRequestService(repo).update_status(ADMIN, pending.id, LeaveStatus.REJECTED)
    assert out.status == "Rejected"


def test_only_pending_can_be_decided(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr = add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00", LeaveStatus.REJECTED)
    svc = LeaveRequestService(repo)
    with pytest.raises(InvalidStateTransition):
        svc.update_status(ADMIN, lr.id, LeaveStatus.APPROVED)

    other = add_leave(session, emp, lt, "2024-04-01T00:00", "2024-04-03T00:00")
    with pytest.raises(InvalidStateTransition):
        svc.update_status(ADMIN, other.id, LeaveStatus.CANCELLED)


def test_non_admin_cannot_approve(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr = add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00")
    with pytest.raises(PermissionDenied):
        LeaveRequestService(repo).update_status(Actor(2, False, emp.id), lr.id, LeaveStatus.APPROVED)


def test_cancel_rejected_fails(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr = add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00", LeaveStatus.REJECTED)
    with pytest.raises(InvalidStateTransition):
        LeaveRequestService(repo).cancel_request(ADMIN, lr.id)


def test_cancel_pending_by_owner(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr = add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00")
    out = LeaveRequestService(repo).cancel_request(Actor(5, False, emp.id), lr.id)
    assert out.status == "Cancelled"
    assert out.updated_by_user_id == 5


def test_cancel_after_approval_clears_approver(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr = add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00")
    svc = LeaveRequestService(repo)
    svc.update_status(ADMIN, lr.id, LeaveStatus.APPROVED, "ok")

    out = svc.cancel_request(ADMIN, lr.id)
    assert out.status == "Cancelled"
    assert out.approver_user_id is None
    assert out.approved_at is None
    assert out.approver_notes == "ok " + leave_status.CANCELLED_AFTER_APPROVAL_NOTE


def test_other_employee_cannot_cancel(session, repo):
    owner = add_employee(session, "Ann")
    other = add_employee(session, "Bob")
    lt = add_leave_type(session)
    lr = add_leave(session, owner, lt, "2024-03-01T00:00", "2024-03-03T00:00")
    with pytest.raises(PermissionDenied):
        LeaveRequestService(repo).cancel_request(Actor(9, False, other.id), lr.id)


def test_create_starts_pending_without_warnings(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr, warnings = LeaveRequestService(repo).create_request(
        Actor(3, False, emp.id), emp.id, lt.id, dt("2024-05-01T00:00"), dt("2024-05-02T00:00"), "trip")
    assert lr.status == "Pending"
    assert lr.created_by_user_id == 3
    assert warnings == []


def test_employee_cannot_file_for_someone_else(session, repo):
    a = add_employee(session, "Ann")
    b = add_employee(session, "Bob")
    lt = add_leave_type(session)
    with pytest.raises(PermissionDenied):
        LeaveRequestService(repo).create_request(
            Actor(3, False, a.id), b.id, lt.id, dt("2024-05-01T00:00"), dt("2024-05-02T00:00"))


def test_edit_only_while_pending(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    lr = add_leave(session, emp, lt, "2024-03-01T00:00", "2024-03-03T00:00", LeaveStatus.APPROVED)
    with pytest.raises(InvalidStateTransition):
        LeaveRequestService(repo).update_request(ADMIN, lr.id, lt.id, dt("2024-03-01T00:00"), dt("2024-03-04T00:00"))


def test_hidden_request_reads_as_missing(session, repo):
    owner = add_employee(session, "Ann")
    other = add_employee(session, "Bob")
    lt = add_leave_type(session)
    lr = add_leave(session, owner, lt, "2024-03-01T00:00", "2024-03-03T00:00")
    with pytest.raises(NotFound):
        LeaveRequestService(repo).get_request(Actor(9, False, other.id), lr.id)


def test_cancel_checks_state_before_ownership(session, repo):
    owner = add_employee(session, "Ann")
    other = add_employee(session, "Bob")
    lt = add_leave_type(session)
    lr = add_leave(session, owner, lt, "2024-03-01T00:00", "2024-03-03T00:00", LeaveStatus.CANCELLED)
    with pytest.raises(InvalidStateTransition):
        LeaveRequestService(repo).cancel_request(Actor(9, False, other.id), lr.id)


def test_list_rejects_unknown_status(session, repo):
    add_employee(session)
    with pytest.raises(ValidationError):
        LeaveRequestService(repo).list_requests(ADMIN, status="maybe")
    assert LeaveRequestService(repo).list_requests(ADMIN, status="pending") == []
