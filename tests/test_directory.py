import pytest

from factories import add_employee, add_leave, add_leave_type, add_role, add_shift, add_shift_type, add_team
from rota_api.common.errors import Conflict, InvalidReference, NotFound, ValidationError
from rota_api.models.employee import Employee
from rota_api.services import directory


def test_team_names_are_unique_ignoring_case(repo):
    directory.save_team(repo, "Support")
    with pytest.raises(Conflict):
        directory.save_team(repo, "  support ")
    with pytest.raises(ValidationError):
        directory.save_team(repo, "")


def test_renaming_a_team_to_its_own_name_is_fine(repo):
    t = directory.save_team(repo, "Support")
    same = directory.save_team(repo, "SUPPORT", "renamed case", team_id=t.id)
    assert same.name == "SUPPORT"


def test_deleting_a_team_keeps_members(session, repo):
    ops = add_team(session, "Ops")
    a = add_employee(session, "Ann", team=ops)
    b = add_employee(session, "Bob", team=ops)

    assert directory.delete_team(repo, ops.id) == 2
    assert session.get(Employee, a.id).team_id is None
    assert session.get(Employee, b.id).team_id is None
    with pytest.raises(NotFound):
        directory.get_team(repo, ops.id)


def test_employee_team_must_exist(repo):
    with pytest.raises(InvalidReference):
        directory.save_employee(repo, {"first_name": "Ann", "last_name": "Lee", "team_id": 99})


def test_employee_delete_is_soft(session, repo):
    e = add_employee(session)
    directory.deactivate_employee(repo, e.id)
    assert session.get(Employee, e.id).is_active is False
    assert directory.list_employees(repo) == []
    assert [x.id for x in directory.list_employees(repo, include_inactive=True)] == [e.id]


def test_type_in_use_cannot_be_deleted(session, repo):
    emp = add_employee(session)
    st = add_shift_type(session, "Day")
    lt = add_leave_type(session, "Annual")
    add_shift(session, emp, "2024-01-01T09:00", "2024-01-01T17:00", st)
    add_leave(session, emp, lt, "2024-01-02T00:00", "2024-01-03T00:00")

    with pytest.raises(Conflict):
        directory.delete_shift_type(repo, st.id)
    with pytest.raises(Conflict):
        directory.delete_leave_type(repo, lt.id)

    unused = add_shift_type(session, "Night")
    directory.delete_shift_type(repo, unused.id)
    assert [t.name for t in directory.list_shift_types(repo)] == ["Day"]


def test_register_user_rules(session, repo):
    role = add_role(session, "Employee")
    e = add_employee(session)
    gone = add_employee(session, "Old", active=False)

    u = directory.register_user(repo, "ann", "secret1", e.id, role.id)
    assert u.check_password("secret1")
    with pytest.raises(Conflict):
        directory.register_user(repo, "ANN", "secret1", e.id, role.id)
    with pytest.raises(InvalidReference):
        directory.register_user(repo, "old", "secret1", gone.id, role.id)
    with pytest.raises(InvalidReference):
        directory.register_user(repo, "newbie", "secret1", e.id, 404)


def test_user_role_and_status(session, repo):
    emp_role = add_role(session, "Employee")
    admin_role = add_role(session, "Admin")
    e = add_employee(session)
    u = directory.register_user(repo, "ann", "secret1", e.id, emp_role.id)

    assert directory.set_user_role(repo, u.id, admin_role.id).role_id == admin_role.id
    assert directory.set_user_status(repo, u.id, False).is_active is False
    assert [r.name for r in directory.list_roles(repo)] == ["Admin", "Employee"]
