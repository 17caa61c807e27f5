# rota_api/services/coverage.py
"""
Shift coverage, on-call gaps and shift-type distribution.

Each report fetches the shifts overlapping the requested window once and
aggregates in Python; nothing here writes, so every call is safe to retry.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from rota_api.models.employee import Employee, Team
from rota_api.models.scheduling import Shift, ShiftType
from rota_api.repository import Repository
from rota_api.services.dto import (
    OnCallAssignment, OnCallGap, OnCallHoursSummary, ShiftCoverage,
    ShiftTypeDistribution, UpcomingOnCall,
)
from rota_api.services.time_window import (
    clamp, day_start, duration_hours, expand_date_range, overlaps, query_window,
)

log = logging.getLogger(__name__)

ALL_TEAMS = "All Teams"
UNASSIGNED = "Unassigned"


def find_gaps(intervals: Iterable[Tuple[datetime, datetime]],
              window_start: datetime, window_end: datetime) -> List[Tuple[datetime, datetime]]:
    """
    Sub-intervals of [window_start, window_end) not covered by any interval.

    Sweep a pointer across intervals sorted by start; each interval is clamped
    to the window first. Overlapping or touching intervals merge through the
    pointer, so they never produce zero-length gaps.
    """
    gaps = []
    pointer = window_start
    for start, end in sorted(intervals):
        start, end = clamp(start, end, window_start, window_end)
        if start > pointer:
            gaps.append((pointer, start))
        pointer = max(pointer, end)
    if pointer < window_end:
        gaps.append((pointer, window_end))
    return gaps


def percentage(part: int, total: int) -> float:
    return round(part * 100 / (total or 1), 2)


def settle_percentages(rows, count_attr: str, pct_attr: str):
    """Push the rounding remainder onto the largest row so the shares add up to 100."""
    if not rows:
        return rows
    drift = round(100 - sum(getattr(r, pct_attr) for r in rows), 2)
    if drift:
        top = max(rows, key=lambda r: getattr(r, count_attr))
        setattr(top, pct_attr, round(getattr(top, pct_attr) + drift, 2))
    return rows


class CoverageAnalyzer:
    def __init__(self, repo: Repository):
        self.repo = repo

    def _shifts(self, start: datetime, end: datetime, team_id: Optional[int] = None,
                shift_type_id: Optional[int] = None, *extra) -> List[Shift]:
        criteria = list(extra)
        if team_id is not None:
            criteria.append(Shift.employee_id.in_(self.repo.team_member_ids(team_id)))
        if shift_type_id is not None:
            criteria.append(Shift.shift_type_id == shift_type_id)
        return self.repo.overlapping(Shift, start, end, *criteria,
                                     order_by=(Shift.start_at, Shift.id))

    # ---------- coverage ----------
    def shift_coverage(self, start_date: date, end_date: date, team_id: Optional[int] = None,
                       shift_type_id: Optional[int] = None,
                       group_by_team: bool = False) -> List[ShiftCoverage]:
        window_start, window_end = query_window(start_date, end_date)
        shifts = self._shifts(window_start, window_end, team_id, shift_type_id)
        if not shifts:
            return []

        employees = self.repo.by_ids(Employee, {s.employee_id for s in shifts})
        teams = self.repo.by_ids(Team, {e.team_id for e in employees.values()})

        def team_of(shift: Shift) -> Optional[int]:
            emp = employees.get(shift.employee_id)
            return emp.team_id if emp else None

        out: List[ShiftCoverage] = []
        for day in expand_date_range(start_date, end_date):
            ds = day_start(day)
            de = ds + timedelta(days=1)
            todays = [s for s in shifts if overlaps(s.start_at, s.end_at, ds, de)]
            if not todays:
                continue

            if not group_by_team:
                out.append(ShiftCoverage(
                    date=day, team_id=None, team_name=ALL_TEAMS,
                    shift_count=len(todays),
                    unique_employee_count=len({s.employee_id for s in todays}),
                ))
                continue

            by_team = defaultdict(list)
            for s in todays:
                by_team[team_of(s)].append(s)
            rows = []
            for tid, group in by_team.items():
                team = teams.get(tid)
                rows.append(ShiftCoverage(
                    date=day,
                    team_id=tid,
                    team_name=team.name if team else UNASSIGNED,
                    shift_count=len(group),
                    unique_employee_count=len({s.employee_id for s in group}),
                ))
            out.extend(sorted(rows, key=lambda r: r.team_name or ""))
        return out

    # ---------- gaps ----------
    def on_call_gaps(self, required_shift_type_id: int, start_date: date,
                     end_date: date) -> List[OnCallGap]:
        shift_type = self.repo.get(ShiftType, required_shift_type_id)
        if shift_type is None or not shift_type.is_on_call:
            return []

        window_start, window_end = query_window(start_date, end_date)
        shifts = self._shifts(window_start, window_end, shift_type_id=required_shift_type_id)
        gaps = find_gaps(((s.start_at, s.end_at) for s in shifts), window_start, window_end)
        return [
            OnCallGap(
                required_shift_type_id=shift_type.id,
                required_shift_type_name=shift_type.name,
                gap_start=gs,
                gap_end=ge,
                duration_hours=duration_hours(gs, ge),
            )
            for gs, ge in gaps
        ]

    # ---------- distribution ----------
    def shift_type_distribution(self, start_date: date, end_date: date,
                                team_id: Optional[int] = None) -> List[ShiftTypeDistribution]:
        window_start, window_end = query_window(start_date, end_date)
        shifts = self._shifts(window_start, window_end, team_id, None, Shift.shift_type_id.isnot(None))

        counts = defaultdict(int)
        for s in shifts:
            counts[s.shift_type_id] += 1
        types = self.repo.by_ids(ShiftType, counts.keys())
        total = sum(counts.values())

        rows = [
            ShiftTypeDistribution(
                shift_type_id=tid,
                shift_type_name=types[tid].name,
                is_on_call=types[tid].is_on_call,
                shift_count=n,
                percentage_of_total=percentage(n, total),
            )
            for tid, n in counts.items() if tid in types
        ]
        return settle_percentages(sorted(rows, key=lambda r: r.shift_type_name), "shift_count", "percentage_of_total")

    # ---------- on-call roster ----------
    def _on_call_shifts(self, window_start, window_end, team_id=None):
        on_call_ids = [t.id for t in self.repo.find(ShiftType, ShiftType.is_on_call.is_(True))]
        if not on_call_ids:
            return [], {}
        shifts = self._shifts(window_start, window_end, team_id, None, Shift.shift_type_id.in_(on_call_ids))
        return shifts, self.repo.by_ids(ShiftType, on_call_ids)

    def upcoming_on_call(self, start_date: date, end_date: date,
                         team_id: Optional[int] = None) -> List[UpcomingOnCall]:
        window_start, window_end = query_window(start_date, end_date)
        shifts, types = self._on_call_shifts(window_start, window_end, team_id)
        if not shifts:
            return []
        employees = self.repo.by_ids(Employee, {s.employee_id for s in shifts})
        teams = self.repo.by_ids(Team, {e.team_id for e in employees.values()})

        out = []
        for day in expand_date_range(start_date, end_date):
            ds = day_start(day)
            de = ds + timedelta(days=1)
            assignments = []
            for s in shifts:
                if not overlaps(s.start_at, s.end_at, ds, de):
                    continue
                emp = employees.get(s.employee_id)
                team = teams.get(emp.team_id) if emp else None
                st = types.get(s.shift_type_id)
                assignments.append(OnCallAssignment(
                    shift_id=s.id,
                    employee_id=s.employee_id,
                    employee_name=emp.full_name if emp else "",
                    team_id=team.id if team else None,
                    team_name=team.name if team else None,
                    shift_type_id=s.shift_type_id,
                    shift_type_name=st.name if st else "Unknown",
                    start=s.start_at,
                    end=s.end_at,
                ))
            if assignments:
                out.append(UpcomingOnCall(date=day, assignments=assignments))
        return out

    def on_call_hours(self, start_date: date, end_date: date,
                      group_by: str = "employee") -> List[OnCallHoursSummary]:
        """Total on-call hours per employee (or team), clamped to the window."""
        window_start, window_end = query_window(start_date, end_date)
        shifts, _ = self._on_call_shifts(window_start, window_end)
        employees = self.repo.by_ids(Employee, {s.employee_id for s in shifts})

        totals = defaultdict(float)
        for s in shifts:
            cs, ce = clamp(s.start_at, s.end_at, window_start, window_end)
            if group_by == "team":
                emp = employees.get(s.employee_id)
                key = emp.team_id if emp else None
            else:
                key = s.employee_id
            totals[key] += duration_hours(cs, ce)

        if group_by == "team":
            teams = self.repo.by_ids(Team, totals.keys())
            names = {k: (teams[k].name if k in teams else UNASSIGNED) for k in totals}
        else:
            names = {k: (employees[k].full_name if k in employees else "") for k in totals}

        rows = [OnCallHoursSummary(grouping_id=k, grouping_name=names[k], total_on_call_hours=round(v, 2))
                for k, v in totals.items()]
        return sorted(rows, key=lambda r: r.grouping_name)
