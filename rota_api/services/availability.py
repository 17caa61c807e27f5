# rota_api/services/availability.py
"""
Team availability, leave summaries/trends, pending counts and the per-employee
schedule timeline. Read-only aggregations over a fetched snapshot.
"""
from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select

from rota_api.common.errors import NotFound
from rota_api.models.employee import Employee, Team
from rota_api.models.leave import LeaveRequest, LeaveStatus, LeaveType
from rota_api.models.scheduling import Shift, ShiftType
from rota_api.repository import Repository
from rota_api.services.dto import (
    LeaveSummary, LeaveSummaryParams, LeaveTrendParams, LeaveTrendPoint,
    PendingCount, ScheduleItem, SummaryGrouping, TeamAvailability, TrendPeriod,
    UpcomingLeave,
)
from rota_api.services.time_window import add_months, clamp, duration_days, query_window, utcnow

log = logging.getLogger(__name__)

ALL_TEAMS = "All Teams"
UNASSIGNED = "Unassigned"


def period_key(d: date, period: TrendPeriod) -> Tuple[str, date, date]:
    """(label, first day, last day) of the bucket containing ``d``."""
    if period == TrendPeriod.YEARLY:
        return f"{d.year}", date(d.year, 1, 1), date(d.year, 12, 31)
    if period == TrendPeriod.QUARTERLY:
        q = (d.month - 1) // 3 + 1
        first = date(d.year, (q - 1) * 3 + 1, 1)
        return f"{d.year}-Q{q}", first, add_months(first, 3) - timedelta(days=1)
    first = date(d.year, d.month, 1)
    last = date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])
    return f"{d.year}-{d.month:02d}", first, last


def bucket_trends(items: List[Tuple[int, datetime, float]], period: TrendPeriod) -> List[LeaveTrendPoint]:
    """
    items: (leave_request_id, clamped_start, clamped_duration_days).
    Only buckets with at least one clamped start are emitted.
    """
    ids: Dict[str, set] = defaultdict(set)
    days: Dict[str, float] = defaultdict(float)
    bounds: Dict[str, Tuple[date, date]] = {}
    for rid, start, dur in items:
        label, first, last = period_key(start.date(), period)
        ids[label].add(rid)
        days[label] += dur
        bounds[label] = (first, last)
    points = [
        LeaveTrendPoint(period_label=label, period_start=bounds[label][0], period_end=bounds[label][1],
                        leave_request_count=len(ids[label]), total_leave_days=days[label])
        for label in ids
    ]
    return sorted(points, key=lambda p: p.period_start)


class AvailabilityAggregator:
    def __init__(self, repo: Repository):
        self.repo = repo

    # ---------- helpers ----------
    def _approved_leave(self, window_start, window_end, employee_id=None, team_id=None,
                        leave_type_id=None) -> List[LeaveRequest]:
        criteria = [LeaveRequest.status == LeaveStatus.APPROVED.value]
        if employee_id is not None:
            criteria.append(LeaveRequest.employee_id == employee_id)
        if team_id is not None:
            criteria.append(LeaveRequest.employee_id.in_(self.repo.team_member_ids(team_id)))
        if leave_type_id is not None:
            criteria.append(LeaveRequest.leave_type_id == leave_type_id)
        return self.repo.overlapping(LeaveRequest, window_start, window_end, *criteria,
                                     order_by=(LeaveRequest.start_at, LeaveRequest.id))

    @staticmethod
    def _clamped(leaves: List[LeaveRequest], window_start, window_end):
        for lr in leaves:
            cs, ce = clamp(lr.start_at, lr.end_at, window_start, window_end)
            yield lr, cs, duration_days(cs, ce)

    # ---------- team availability ----------
    def team_availability(self, team_id: int, start_date: date, end_date: date) -> Optional[TeamAvailability]:
        team = self.repo.get(Team, team_id)
        if team is None:
            return None
        window_start, window_end = query_window(start_date, end_date)

        active_ids = set(self.repo.scalars(
            select(Employee.id).where(Employee.team_id == team_id, Employee.is_active.is_(True))
        ))
        on_shift = {s.employee_id for s in self.repo.overlapping(
            Shift, window_start, window_end, Shift.employee_id.in_(sorted(active_ids)))} if active_ids else set()
        on_leave = {lr.employee_id for lr in self.repo.overlapping(
            LeaveRequest, window_start, window_end,
            LeaveRequest.status == LeaveStatus.APPROVED.value,
            LeaveRequest.employee_id.in_(sorted(active_ids)))} if active_ids else set()

        # set difference: someone both on shift and on leave is counted once
        available = active_ids - (on_shift | on_leave)

        return TeamAvailability(
            team_id=team.id,
            team_name=team.name,
            period_start=window_start.date(),
            period_end=(window_end - timedelta(days=1)).date(),
            total_active_team_members=len(active_ids),
            members_on_shift_count=len(on_shift),
            members_on_leave_count=len(on_leave),
            members_potentially_available=len(available),
        )

    # ---------- leave summary ----------
    def leave_summary(self, params: LeaveSummaryParams) -> List[LeaveSummary]:
        today = utcnow().date()
        start = params.start_date or date(today.year, 1, 1)
        end = params.end_date or date(today.year, 12, 31)
        window_start, window_end = query_window(start, end)

        leaves = self._approved_leave(window_start, window_end, params.employee_id,
                                      params.team_id, params.leave_type_id)
        rows = list(self._clamped(leaves, window_start, window_end))
        grouping = SummaryGrouping(params.group_by)

        if grouping == SummaryGrouping.NONE:
            return [LeaveSummary(grouping_dimension="Overall", grouping_id=None, grouping_name="Total",
                                 leave_request_count=len(rows),
                                 total_leave_days=sum(d for _, _, d in rows))]

        employees = self.repo.by_ids(Employee, {lr.employee_id for lr in leaves})
        if grouping == SummaryGrouping.LEAVE_TYPE:
            dimension = "LeaveType"
            types = self.repo.by_ids(LeaveType, {lr.leave_type_id for lr in leaves})
            key_of = lambda lr: lr.leave_type_id
            name_of = lambda k: types[k].name if k in types else ""
        elif grouping == SummaryGrouping.TEAM:
            dimension = "Team"
            teams = self.repo.by_ids(Team, {e.team_id for e in employees.values()})
            key_of = lambda lr: employees[lr.employee_id].team_id if lr.employee_id in employees else None
            name_of = lambda k: teams[k].name if k in teams else UNASSIGNED
        else:
            dimension = "Employee"
            key_of = lambda lr: lr.employee_id
            name_of = lambda k: employees[k].full_name if k in employees else ""

        counts: Dict[Optional[int], int] = defaultdict(int)
        totals: Dict[Optional[int], float] = defaultdict(float)
        for lr, _, dur in rows:
            k = key_of(lr)
            counts[k] += 1
            totals[k] += dur

        out = [LeaveSummary(grouping_dimension=dimension, grouping_id=k, grouping_name=name_of(k),
                            leave_request_count=counts[k], total_leave_days=totals[k])
               for k in counts]
        return sorted(out, key=lambda s: s.grouping_name)

    # ---------- leave trends ----------
    def leave_trends(self, params: LeaveTrendParams) -> List[LeaveTrendPoint]:
        end = params.end_date or utcnow().date()
        start = params.start_date or (add_months(end, -12) + timedelta(days=1))
        window_start, window_end = query_window(start, end)

        leaves = self._approved_leave(window_start, window_end, params.employee_id,
                                      params.team_id, params.leave_type_id)
        items = [(lr.id, cs, dur) for lr, cs, dur in self._clamped(leaves, window_start, window_end)]
        return bucket_trends(items, TrendPeriod(params.period))

    # ---------- pending ----------
    def pending_leave_count(self, team_id: Optional[int] = None) -> List[PendingCount]:
        stmt = select(func.count(LeaveRequest.id)).where(LeaveRequest.status == LeaveStatus.PENDING.value)
        if team_id is None:
            return [PendingCount(team_id=None, team_name=ALL_TEAMS, count=self.repo.count(stmt))]

        team = self.repo.get(Team, team_id)
        if team is None:
            raise NotFound(f"Team with ID {team_id} not found.")
        stmt = stmt.where(LeaveRequest.employee_id.in_(self.repo.team_member_ids(team_id)))
        return [PendingCount(team_id=team.id, team_name=team.name, count=self.repo.count(stmt))]

    # ---------- schedule ----------
    def employee_schedule(self, employee_id: int, start_date: date, end_date: date) -> List[ScheduleItem]:
        window_start, window_end = query_window(start_date, end_date)

        shifts = self.repo.overlapping(Shift, window_start, window_end, Shift.employee_id == employee_id)
        leaves = self.repo.overlapping(
            LeaveRequest, window_start, window_end,
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_([LeaveStatus.APPROVED.value, LeaveStatus.PENDING.value]),
        )
        shift_types = self.repo.by_ids(ShiftType, {s.shift_type_id for s in shifts})
        leave_types = self.repo.by_ids(LeaveType, {lr.leave_type_id for lr in leaves})

        items = [
            ScheduleItem(item_type="Shift", start=s.start_at, end=s.end_at,
                         description=shift_types[s.shift_type_id].name if s.shift_type_id in shift_types else "Unknown Type",
                         notes=s.notes, reference_id=s.id)
            for s in shifts
        ]
        items += [
            ScheduleItem(item_type="Leave", start=lr.start_at, end=lr.end_at,
                         description=leave_types[lr.leave_type_id].name if lr.leave_type_id in leave_types else "",
                         notes=lr.reason, reference_id=lr.id, status=lr.status)
            for lr in leaves
        ]
        return sorted(items, key=lambda i: i.start)

    # ---------- upcoming leave ----------
    def upcoming_leave(self, start_date: date, end_date: date, team_id: Optional[int] = None,
                       employee_id: Optional[int] = None) -> List[UpcomingLeave]:
        window_start, window_end = query_window(start_date, end_date)
        leaves = self._approved_leave(window_start, window_end, employee_id=employee_id, team_id=team_id)
        employees = self.repo.by_ids(Employee, {lr.employee_id for lr in leaves})
        teams = self.repo.by_ids(Team, {e.team_id for e in employees.values()})
        types = self.repo.by_ids(LeaveType, {lr.leave_type_id for lr in leaves})

        out = []
        for lr in leaves:
            emp = employees.get(lr.employee_id)
            team = teams.get(emp.team_id) if emp else None
            out.append(UpcomingLeave(
                leave_request_id=lr.id,
                employee_id=lr.employee_id,
                employee_name=emp.full_name if emp else "",
                team_id=team.id if team else None,
                team_name=team.name if team else None,
                leave_type_id=lr.leave_type_id,
                leave_type_name=types[lr.leave_type_id].name if lr.leave_type_id in types else "",
                start=lr.start_at,
                end=lr.end_at,
            ))
        return out
