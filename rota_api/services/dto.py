# rota_api/services/dto.py
"""Plain result records returned by the engine; the blueprints serialise them."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class SummaryGrouping(str, Enum):
    NONE = "none"
    LEAVE_TYPE = "leave_type"
    TEAM = "team"
    EMPLOYEE = "employee"


class TrendPeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


@dataclass
class LeaveSummaryParams:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    team_id: Optional[int] = None
    employee_id: Optional[int] = None
    leave_type_id: Optional[int] = None
    group_by: SummaryGrouping = SummaryGrouping.LEAVE_TYPE


@dataclass
class LeaveTrendParams:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    period: TrendPeriod = TrendPeriod.MONTHLY
    leave_type_id: Optional[int] = None
    team_id: Optional[int] = None
    employee_id: Optional[int] = None


# ---------- coverage ----------
@dataclass
class ShiftCoverage:
    date: date
    team_id: Optional[int]
    team_name: Optional[str]
    shift_count: int
    unique_employee_count: int


@dataclass
class OnCallGap:
    required_shift_type_id: int
    required_shift_type_name: str
    gap_start: datetime
    gap_end: datetime
    duration_hours: float


@dataclass
class ShiftTypeDistribution:
    shift_type_id: int
    shift_type_name: str
    is_on_call: bool
    shift_count: int
    percentage_of_total: float


@dataclass
class OnCallAssignment:
    shift_id: int
    employee_id: int
    employee_name: str
    team_id: Optional[int]
    team_name: Optional[str]
    shift_type_id: Optional[int]
    shift_type_name: str
    start: datetime
    end: datetime


@dataclass
class UpcomingOnCall:
    date: date
    assignments: List[OnCallAssignment] = field(default_factory=list)


@dataclass
class OnCallHoursSummary:
    grouping_id: Optional[int]
    grouping_name: str
    total_on_call_hours: float


# ---------- availability / leave ----------
@dataclass
class TeamAvailability:
    team_id: int
    team_name: str
    period_start: date
    period_end: date
    total_active_team_members: int
    members_on_shift_count: int
    members_on_leave_count: int
    members_potentially_available: int


@dataclass
class LeaveSummary:
    grouping_dimension: str
    grouping_id: Optional[int]
    grouping_name: str
    leave_request_count: int
    total_leave_days: float


@dataclass
class LeaveTrendPoint:
    period_label: str
    period_start: date
    period_end: date
    leave_request_count: int
    total_leave_days: float


@dataclass
class PendingCount:
    team_id: Optional[int]
    team_name: str
    count: int


@dataclass
class ScheduleItem:
    item_type: str  # "Shift" | "Leave"
    start: datetime
    end: datetime
    description: str
    notes: Optional[str]
    reference_id: int
    status: Optional[str] = None


@dataclass
class UpcomingLeave:
    leave_request_id: int
    employee_id: int
    employee_name: str
    team_id: Optional[int]
    team_name: Optional[str]
    leave_type_id: int
    leave_type_name: str
    start: datetime
    end: datetime
