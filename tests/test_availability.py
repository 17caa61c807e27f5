from datetime import date, datetime

import pytest

from factories import add_employee, add_leave, add_leave_type, add_shift, add_shift_type, add_team
from rota_api.common.errors import NotFound
from rota_api.models.leave import LeaveStatus
from rota_api.services.availability import AvailabilityAggregator, bucket_trends, period_key
from rota_api.services.dto import LeaveSummaryParams, LeaveTrendParams, SummaryGrouping, TrendPeriod

APPROVED = LeaveStatus.APPROVED


def test_period_keys():
    assert period_key(date(2024, 2, 10), TrendPeriod.MONTHLY) == ("2024-02", date(2024, 2, 1), date(2024, 2, 29))
    assert period_key(date(2024, 5, 10), TrendPeriod.QUARTERLY) == ("2024-Q2", date(2024, 4, 1), date(2024, 6, 30))
    assert period_key(date(2024, 12, 31), TrendPeriod.QUARTERLY)[0] == "2024-Q4"
    assert period_key(date(2024, 5, 10), TrendPeriod.YEARLY) == ("2024", date(2024, 1, 1), date(2024, 12, 31))


def test_bucket_trends_skips_empty_periods():
    items = [(1, datetime(2024, 1, 5), 2.0), (2, datetime(2024, 3, 1), 1.5), (3, datetime(2024, 1, 20), 1.0)]
    points = bucket_trends(items, TrendPeriod.MONTHLY)
    assert [(p.period_label, p.leave_request_count, p.total_leave_days) for p in points] == [
        ("2024-01", 2, 3.0),
        ("2024-03", 1, 1.5),
    ]


def test_leave_summary_overall_excludes_pending(session, repo):
    a = add_employee(session, "Ann")
    b = add_employee(session, "Bob")
    lt = add_leave_type(session)
    add_leave(session, a, lt, "2024-06-03T00:00", "2024-06-05T00:00", APPROVED)
    add_leave(session, b, lt, "2024-06-10T00:00", "2024-06-12T00:00", APPROVED)
    add_leave(session, b, lt, "2024-06-17T00:00", "2024-06-20T00:00")

    rows = AvailabilityAggregator(repo).leave_summary(LeaveSummaryParams(
        start_date=date(2024, 6, 1), end_date=date(2024, 6, 30), group_by=SummaryGrouping.NONE))
    assert len(rows) == 1
    assert (rows[0].grouping_dimension, rows[0].grouping_name) == ("Overall", "Total")
    assert rows[0].leave_request_count == 2
    assert rows[0].total_leave_days == 4.0


def test_leave_summary_by_type_clamps_to_window(session, repo):
    emp = add_employee(session)
    annual = add_leave_type(session, "Annual")
    sick = add_leave_type(session, "Sick")
    add_leave(session, emp, annual, "2024-05-30T00:00", "2024-06-03T00:00", APPROVED)  # 2 days inside June
    add_leave(session, emp, sick, "2024-06-10T00:00", "2024-06-11T00:00", APPROVED)

    rows = AvailabilityAggregator(repo).leave_summary(LeaveSummaryParams(
        start_date=date(2024, 6, 1), end_date=date(2024, 6, 30)))
    assert [(r.grouping_dimension, r.grouping_name, r.leave_request_count, r.total_leave_days) for r in rows] == [
        ("LeaveType", "Annual", 1, 2.0),
        ("LeaveType", "Sick", 1, 1.0),
    ]


def test_leave_summary_by_team(session, repo):
    ops = add_team(session, "Ops")
    a = add_employee(session, "Ann", team=ops)
    b = add_employee(session, "Bob")
    lt = add_leave_type(session)
    add_leave(session, a, lt, "2024-06-03T00:00", "2024-06-04T00:00", APPROVED)
    add_leave(session, b, lt, "2024-06-03T00:00", "2024-06-04T00:00", APPROVED)

    rows = AvailabilityAggregator(repo).leave_summary(LeaveSummaryParams(
        start_date=date(2024, 6, 1), end_date=date(2024, 6, 30), group_by=SummaryGrouping.TEAM))
    assert [(r.grouping_id, r.grouping_name) for r in rows] == [(ops.id, "Ops"), (None, "Unassigned")]


def test_leave_trends_monthly_and_quarterly(session, repo):
    emp = add_employee(session)
    lt = add_leave_type(session)
    add_leave(session, emp, lt, "2024-01-10T00:00", "2024-01-12T00:00", APPROVED)
    add_leave(session, emp, lt, "2024-03-04T00:00", "2024-03-05T00:00", APPROVED)
    add_leave(session, emp, lt, "2024-02-04T00:00", "2024-02-05T00:00")  # pending

    agg = AvailabilityAggregator(repo)
    monthly = agg.leave_trends(LeaveTrendParams(start_date=date(2024, 1, 1), end_date=date(2024, 6, 30)))
    assert [(p.period_label, p.leave_request_count, p.total_leave_days) for p in monthly] == [
        ("2024-01", 1, 2.0),
        ("2024-03", 1, 1.0),
    ]

    quarterly = agg.leave_trends(LeaveTrendParams(start_date=date(2024, 1, 1), end_date=date(2024, 6, 30),
                                                  period=TrendPeriod.QUARTERLY))
    assert [(p.period_label, p.leave_request_count, p.total_leave_days) for p in quarterly] == [("2024-Q1", 2, 3.0)]


def test_pending_count(session, repo):
    ops = add_team(session, "Ops")
    a = add_employee(session, "Ann", team=ops)
    b = add_employee(session, "Bob")
    lt = add_leave_type(session)
    add_leave(session, a, lt, "2024-06-03T00:00", "2024-06-04T00:00")
    add_leave(session, b, lt, "2024-06-03T00:00", "2024-06-04T00:00")
    add_leave(session, a, lt, "2024-07-03T00:00", "2024-07-04T00:00", APPROVED)

    agg = AvailabilityAggregator(repo)
    overall = agg.pending_leave_count()
    assert [(r.team_name, r.count) for r in overall] == [("All Teams", 2)]
    assert [(r.team_name, r.count) for r in agg.pending_leave_count(ops.id)] == [("Ops", 1)]
    with pytest.raises(NotFound):
        agg.pending_leave_count(999)


def test_team_availability_counts_each_member_once(session, repo):
    ops = add_team(session, "Ops")
    a = add_employee(session, "Ann", team=ops)
    b = add_employee(session, "Bob", team=ops)
    add_employee(session, "Cy", team=ops)
    add_employee(session, "Dee", team=ops, active=False)
    lt = add_leave_type(session)
    add_shift(session, a, "2024-06-03T09:00", "2024-06-03T12:00")
    add_leave(session, a, lt, "2024-06-03T13:00", "2024-06-04T00:00", APPROVED)
    add_shift(session, b, "2024-06-03T09:00", "2024-06-03T17:00")

    av = AvailabilityAggregator(repo).team_availability(ops.id, date(2024, 6, 3), date(2024, 6, 3))
    assert av.total_active_team_members == 3
    assert av.members_on_shift_count == 2
    assert av.members_on_leave_count == 1
    # Ann is both on shift and on leave; only Cy is free
    assert av.members_potentially_available == 1
    assert (av.period_start, av.period_end) == (date(2024, 6, 3), date(2024, 6, 3))


def test_team_availability_unknown_team(repo):
    assert AvailabilityAggregator(repo).team_availability(404, date(2024, 6, 3), date(2024, 6, 3)) is None


def test_employee_schedule_merges_shifts_and_leave(session, repo):
    emp = add_employee(session)
    st = add_shift_type(session, "Day")
    lt = add_leave_type(session, "Annual")
    add_shift(session, emp, "2024-06-03T09:00", "2024-06-03T17:00", st)
    add_leave(session, emp, lt, "2024-06-05T00:00", "2024-06-06T00:00", APPROVED)
    add_leave(session, emp, lt, "2024-06-04T00:00", "2024-06-05T00:00")
    add_leave(session, emp, lt, "2024-06-06T00:00", "2024-06-07T00:00", LeaveStatus.REJECTED)

    items = AvailabilityAggregator(repo).employee_schedule(emp.id, date(2024, 6, 1), date(2024, 6, 30))
    assert [(i.item_type, i.description, i.status) for i in items] == [
        ("Shift", "Day", None),
        ("Leave", "Annual", "Pending"),
        ("Leave", "Annual", "Approved"),
    ]


def test_upcoming_leave_only_approved(session, repo):
    ops = add_team(session, "Ops")
    a = add_employee(session, "Ann", team=ops)
    lt = add_leave_type(session, "Annual")
    add_leave(session, a, lt, "2024-06-05T00:00", "2024-06-06T00:00", APPROVED)
    add_leave(session, a, lt, "2024-06-07T00:00", "2024-06-08T00:00")

    rows = AvailabilityAggregator(repo).upcoming_leave(date(2024, 6, 1), date(2024, 6, 10), team_id=ops.id)
    assert [(r.employee_name, r.team_name, r.leave_type_name) for r in rows] == [("Ann Lee", "Ops", "Annual")]
