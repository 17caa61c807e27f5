import pytest
from sqlalchemy import func, select

from factories import add_employee, add_leave, add_leave_type, add_shift, add_shift_type, dt
from rota_api.common.errors import Conflict, InvalidRange, InvalidReference
from rota_api.models.leave import LeaveStatus
from rota_api.models.scheduling import Shift
from rota_api.services.conflict_rules import WARN_OVERLAPS_SHIFT, ConflictRules
from rota_api.services.shift_service import ShiftService


def _shift_count(repo):
    return repo.count(select(func.count(Shift.id)))


def test_touching_shifts_are_both_accepted(session, repo):
    emp = add_employee(session)
    svc = ShiftService(repo)
    svc.create_shift(emp.id, dt("2024-01-01T09:00"), dt("2024-01-01T17:00"))
    svc.create_shift(emp.id, dt("2024-01-01T17:00"), dt("2024-01-01T20:00"))
    assert _shift_count(repo) == 2


def test_overlapping_shift_is_rejected(session, repo):
    emp = add_employee(session)
    svc = ShiftService(repo)
    svc.create_shift(emp.id, dt("2024-01-01T09:00"), dt("2024-01-01T17:00"))
    with pytest.raises(Conflict):
        svc.create_shift(emp.id, dt("2024-01-01T16:00"), dt("2024-01-01T20:00"))
    assert _shift_count(repo) == 1


def test_other_employees_do_not_conflict(session, repo):
    a = add_employee(session, "Ann")
    b = add_employee(session, "Bob")
    svc = ShiftService(repo)
    svc.create_shift(a.id, dt("2024-01-01T09:00"), dt("2024-01-01T17:00"))
    svc.create_shift(b.id, dt("2024-01-01T09:00"), dt("2024-01-01T17:00"))
    assert _shift_count(repo) == 2


def test_range_is_checked_before_references(repo):
    # employee 999 does not exist, but the range error wins
    with pytest.raises(InvalidRange):
        ConflictRules(repo).validate_shift(999, None, dt("2024-01-01T10:00"), dt("2024-01-01T10:00"))


def test_inactive_employee_and_unknown_type(session, repo):
    gone = add_employee(session, active=False)
    rules = ConflictRules(repo)
    with pytest.raises(InvalidReference):
        rules.validate_shift(gone.id, None, dt("2024-01-01T09:00"), dt("2024-01-01T10:00"))

    emp = add_employee(session, "Cy")
    with pytest.raises(InvalidReference):
        rules.validate_shift(emp.id, 42, dt("2024-01-01T09:00"), dt("2024-01-01T10:00"))


def test_update_excludes_the_shift_itself(session, repo):
    emp = add_employee(session)
    st = add_shift_type(session)
    s = add_shift(session, emp, "2024-01-01T09:00", "2024-01-01T17:00", st)
    updated = ShiftService(repo).update_shift(s.id, emp.id, dt("2024-01-01T10:00"), dt("2024-01-01T18:00"),
                                             shift_type_id=st.id)
    assert updated.start_at == dt("2024-01-01T10:00")
    assert updated.version == 2


def test_update_with_stale_version_is_conflict(session, repo):
    emp = add_employee(session)
    s = add_shift(session, emp, "2024-01-01T09:00", "2024-01-01T17:00")
    with pytest.raises(Conflict):
        ShiftService(repo).update_shift(s.id, emp.id, dt("2024-01-01T10:00"), dt("2024-01-01T18:00"),
                                        expected_version=s.version + 1)


def test_verifying_query_catches_concurrent_insert(session, repo, monkeypatch):
    emp = add_employee(session)
    svc = ShiftService(repo)
    # first check passes as if the competing shift had not committed yet
    monkeypatch.setattr(svc.rules, "validate_shift", lambda *a, **kw: None)
    add_shift(session, emp, "2024-01-01T09:00", "2024-01-01T17:00")

    with pytest.raises(Conflict):
        svc.create_shift(emp.id, dt("2024-01-01T12:00"), dt("2024-01-01T14:00"))
    assert _shift_count(repo) == 1


def test_leave_against_approved_leave_conflicts(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    add_leave(session, emp, lt, "2024-02-01T00:00", "2024-02-03T00:00", LeaveStatus.APPROVED)
    with pytest.raises(Conflict):
        ConflictRules(repo).validate_leave(emp.id, lt.id, dt("2024-02-02T00:00"), dt("2024-02-04T00:00"))


def test_leave_over_pending_leave_is_allowed(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    add_leave(session, emp, lt, "2024-02-01T00:00", "2024-02-03T00:00", LeaveStatus.PENDING)
    assert ConflictRules(repo).validate_leave(emp.id, lt.id, dt("2024-02-02T00:00"), dt("2024-02-04T00:00")) == []


def test_leave_over_a_shift_only_warns(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    add_shift(session, emp, "2024-02-01T09:00", "2024-02-01T17:00")
    warnings = ConflictRules(repo).validate_leave(emp.id, lt.id, dt("2024-02-01T00:00"), dt("2024-02-02T00:00"))
    assert warnings == [WARN_OVERLAPS_SHIFT]


def test_unknown_leave_type(session, repo):
    emp = add_employee(session)
    with pytest.raises(InvalidReference):
        ConflictRules(repo).validate_leave(emp.id, 77, dt("2024-02-01T00:00"), dt("2024-02-02T00:00"))
