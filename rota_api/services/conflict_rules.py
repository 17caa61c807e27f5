# rota_api/services/conflict_rules.py
"""
Double-booking checks for shifts and leave.

Read-only: every method either answers or raises; nothing here writes.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from rota_api.common.errors import Conflict, InvalidRange, InvalidReference
from rota_api.models.employee import Employee
from rota_api.models.leave import LeaveRequest, LeaveStatus, LeaveType
from rota_api.models.scheduling import Shift, ShiftType
from rota_api.repository import Repository

log = logging.getLogger(__name__)

WARN_OVERLAPS_SHIFT = "overlaps_shift"


class ConflictRules:
    def __init__(self, repo: Repository):
        self.repo = repo

    # ---------- overlap queries ----------
    def shift_overlap_exists(self, employee_id: int, start: datetime, end: datetime,
                             exclude_shift_id: Optional[int] = None) -> bool:
        criteria = [Shift.employee_id == employee_id, Shift.start_at < end, Shift.end_at > start]
        if exclude_shift_id is not None:
            criteria.append(Shift.id != exclude_shift_id)
        return self.repo.exists(Shift, *criteria)

    def approved_leave_overlap_exists(self, employee_id: int, start: datetime, end: datetime,
                                      exclude_leave_request_id: Optional[int] = None) -> bool:
        criteria = [
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status == LeaveStatus.APPROVED.value,
            LeaveRequest.start_at < end,
            LeaveRequest.end_at > start,
        ]
        if exclude_leave_request_id is not None:
            criteria.append(LeaveRequest.id != exclude_leave_request_id)
        return self.repo.exists(LeaveRequest, *criteria)

    # ---------- reference checks ----------
    @staticmethod
    def check_range(start: datetime, end: datetime, what: str = "Shift"):
        if start is None or end is None:
            raise InvalidRange(f"{what} start and end are required.")
        if start >= end:
            raise InvalidRange(f"{what} end date/time must be after the start date/time.")

    def require_active_employee(self, employee_id: int) -> Employee:
        emp = self.repo.get(Employee, employee_id)
        if emp is None or not emp.is_active:
            raise InvalidReference(f"Active employee with ID {employee_id} not found.",
                                   payload={"field": "employee_id"})
        return emp

    # ---------- validation sequences ----------
    def validate_shift(self, employee_id: int, shift_type_id: Optional[int],
                       start: datetime, end: datetime,
                       exclude_shift_id: Optional[int] = None,
                       check_employee: bool = True,
                       check_shift_type: bool = True) -> None:
        """
        Create/update checks in fixed order:
          1) start < end                     -> InvalidRange
          2) employee exists and is active   -> InvalidReference
          3) shift type exists (if given)    -> InvalidReference
          4) no overlapping shift            -> Conflict
        """
        self.check_range(start, end, "Shift")
        if check_employee:
            self.require_active_employee(employee_id)
        if check_shift_type and shift_type_id is not None and self.repo.get(ShiftType, shift_type_id) is None:
            raise InvalidReference(f"ShiftType with ID {shift_type_id} not found.",
                                   payload={"field": "shift_type_id"})
        if self.shift_overlap_exists(employee_id, start, end, exclude_shift_id):
            log.info("shift overlap rejected employee=%s %s..%s", employee_id, start, end)
            raise Conflict("Employee already has an overlapping shift during this time period.")

    def validate_leave(self, employee_id: int, leave_type_id: int,
                       start: datetime, end: datetime,
                       exclude_leave_request_id: Optional[int] = None) -> List[str]:
        """
        Leave creation checks; returns advisory warnings.
          1) start < end                         -> InvalidRange
          2) employee active                     -> InvalidReference
          3) leave type exists                   -> InvalidReference
          4) no overlapping *approved* leave     -> Conflict
          5) overlapping shift                   -> warning only
        """
        self.check_range(start, end, "Leave")
        self.require_active_employee(employee_id)
        if self.repo.get(LeaveType, leave_type_id) is None:
            raise InvalidReference(f"LeaveType with ID {leave_type_id} not found.",
                                   payload={"field": "leave_type_id"})
        if self.approved_leave_overlap_exists(employee_id, start, end, exclude_leave_request_id):
            raise Conflict("Employee already has approved leave during this time period.")

        warnings = []
        if self.shift_overlap_exists(employee_id, start, end):
            log.warning("leave request for employee %s overlaps an existing shift (%s..%s)",
                        employee_id, start, end)
            warnings.append(WARN_OVERLAPS_SHIFT)
        return warnings
