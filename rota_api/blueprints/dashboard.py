# rota_api/blueprints/dashboard.py
"""Read-only rota and leave reports. Every route takes inclusive YYYY-MM-DD dates."""
from flask import Blueprint, request

from rota_api.common.auth import current_actor, requires_admin, requires_perms
from rota_api.common.errors import NotFound, ValidationError
from rota_api.common.http import ok
from rota_api.common.params import arg_bool, arg_date, arg_int, arg_range
from rota_api.repository import Repository
from rota_api.services import access_scope
from rota_api.services.availability import AvailabilityAggregator
from rota_api.services.coverage import CoverageAnalyzer
from rota_api.services.dto import LeaveSummaryParams, LeaveTrendParams, SummaryGrouping, TrendPeriod

bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")

# default look-ahead for the "upcoming" views
UPCOMING_DAYS = 7


def _choice(name, enum_cls, default):
    raw = (request.args.get(name) or "").strip().lower()
    if not raw:
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{name} must be one of: {allowed}.", payload={"field": name})


def _leave_scope(repo):
    """Employee filter for leave reports; non-admins only ever see their own leave."""
    return access_scope.read_scope(current_actor(repo), arg_int("employee_id"))


# ---------- on-call ----------
@bp.get("/oncall/upcoming")
@requires_perms("rota.view")
def oncall_upcoming():
    start, end = arg_range(default_days=UPCOMING_DAYS)
    rows = CoverageAnalyzer(Repository()).upcoming_on_call(start, end, team_id=arg_int("team_id"))
    return ok(rows)


@bp.get("/oncall/gaps")
@requires_admin()
def oncall_gaps():
    shift_type_id = arg_int("shift_type_id")
    if shift_type_id is None:
        raise ValidationError("shift_type_id is required.", payload={"field": "shift_type_id"})
    start, end = arg_range()
    return ok(CoverageAnalyzer(Repository()).on_call_gaps(shift_type_id, start, end))


@bp.get("/oncall/hours")
@requires_perms("rota.view")
def oncall_hours():
    start, end = arg_range()
    group_by = (request.args.get("group_by") or "employee").strip().lower()
    if group_by not in ("employee", "team"):
        raise ValidationError("group_by must be 'employee' or 'team'.", payload={"field": "group_by"})
    return ok(CoverageAnalyzer(Repository()).on_call_hours(start, end, group_by=group_by))


# ---------- shifts ----------
@bp.get("/shifts/coverage")
@requires_perms("rota.view")
def shift_coverage():
    start, end = arg_range()
    rows = CoverageAnalyzer(Repository()).shift_coverage(
        start, end,
        team_id=arg_int("team_id"),
        shift_type_id=arg_int("shift_type_id"),
        group_by_team=bool(arg_bool("group_by_team")),
    )
    return ok(rows)


@bp.get("/shifts/type-distribution")
@requires_perms("rota.view")
def shift_type_distribution():
    start, end = arg_range()
    return ok(CoverageAnalyzer(Repository()).shift_type_distribution(start, end, team_id=arg_int("team_id")))


# ---------- leave ----------
@bp.get("/leave/summary")
@requires_perms("leave.view")
def leave_summary():
    repo = Repository()
    scoped = _leave_scope(repo)
    if scoped is access_scope.DENY:
        return ok([])
    params = LeaveSummaryParams(
        start_date=arg_date("start_date"),
        end_date=arg_date("end_date"),
        team_id=arg_int("team_id"),
        employee_id=scoped,
        leave_type_id=arg_int("leave_type_id"),
        group_by=_choice("group_by", SummaryGrouping, SummaryGrouping.LEAVE_TYPE),
    )
    return ok(AvailabilityAggregator(repo).leave_summary(params))


@bp.get("/leave/trends")
@requires_perms("leave.view")
def leave_trends():
    repo = Repository()
    scoped = _leave_scope(repo)
    if scoped is access_scope.DENY:
        return ok([])
    params = LeaveTrendParams(
        start_date=arg_date("start_date"),
        end_date=arg_date("end_date"),
        period=_choice("period", TrendPeriod, TrendPeriod.MONTHLY),
        leave_type_id=arg_int("leave_type_id"),
        team_id=arg_int("team_id"),
        employee_id=scoped,
    )
    return ok(AvailabilityAggregator(repo).leave_trends(params))


@bp.get("/leave/pending-count")
@requires_admin()
def pending_count():
    return ok(AvailabilityAggregator(Repository()).pending_leave_count(team_id=arg_int("team_id")))


@bp.get("/leave/upcoming")
@requires_perms("leave.view")
def upcoming_leave():
    start, end = arg_range(default_days=UPCOMING_DAYS)
    repo = Repository()
    scoped = _leave_scope(repo)
    if scoped is access_scope.DENY:
        return ok([])
    return ok(AvailabilityAggregator(repo).upcoming_leave(start, end, team_id=arg_int("team_id"), employee_id=scoped))


# ---------- availability / schedule ----------
@bp.get("/availability/team/<int:team_id>")
@requires_perms("rota.view")
def team_availability(team_id: int):
    start, end = arg_range()
    result = AvailabilityAggregator(Repository()).team_availability(team_id, start, end)
    if result is None:
        raise NotFound(f"Team with ID {team_id} not found.")
    return ok(result)


@bp.get("/employee/<int:employee_id>/schedule")
@requires_perms("rota.view")
def employee_schedule(employee_id: int):
    repo = Repository()
    # a schedule includes pending leave, so it follows leave visibility
    if not access_scope.can_see_employee(current_actor(repo), employee_id):
        raise NotFound(f"Employee with ID {employee_id} not found.")
    start, end = arg_range()
    return ok(AvailabilityAggregator(repo).employee_schedule(employee_id, start, end))
