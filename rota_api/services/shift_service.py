# rota_api/services/shift_service.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from rota_api.common.errors import Conflict, NotFound
from rota_api.models.employee import Employee
from rota_api.models.scheduling import Shift, ShiftType
from rota_api.repository import Repository
from rota_api.services.conflict_rules import ConflictRules
from rota_api.services.time_window import as_utc, query_window, utcnow

log = logging.getLogger(__name__)


class ShiftService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.rules = ConflictRules(repo)

    def list_shifts(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                    employee_id: Optional[int] = None, team_id: Optional[int] = None,
                    is_on_call: Optional[bool] = None) -> List[Shift]:
        criteria = []
        if start_date and end_date:
            ws, we = query_window(start_date, end_date)
            criteria += [Shift.start_at < we, Shift.end_at > ws]
        if employee_id is not None:
            criteria.append(Shift.employee_id == employee_id)
        if team_id is not None:
            criteria.append(Shift.employee_id.in_(self.repo.team_member_ids(team_id)))
        if is_on_call is not None:
            type_ids = [t.id for t in self.repo.find(ShiftType, ShiftType.is_on_call.is_(bool(is_on_call)))]
            criteria.append(Shift.shift_type_id.in_(type_ids))
        return self.repo.find(Shift, *criteria, order_by=(Shift.start_at, Shift.employee_id))

    def get_shift(self, shift_id: int) -> Shift:
        shift = self.repo.get(Shift, shift_id)
        if shift is None:
            raise NotFound(f"Shift with ID {shift_id} not found.")
        return shift

    def _verify_after_write(self, shift: Shift):
        """
        Second overlap pass inside the write transaction. Catches a competing
        request that committed an overlapping shift after our first check.
        """
        self.repo.flush()
        if self.rules.shift_overlap_exists(shift.employee_id, shift.start_at, shift.end_at,
                                           exclude_shift_id=shift.id):
            self.repo.rollback()
            log.warning("concurrent overlapping shift detected for employee %s", shift.employee_id)
            raise Conflict("Employee already has an overlapping shift during this time period.")

    def create_shift(self, employee_id: int, start_at, end_at, shift_type_id: Optional[int] = None,
                     notes: Optional[str] = None, actor_user_id: Optional[int] = None) -> Shift:
        start_at = as_utc(start_at) if start_at else start_at
        end_at = as_utc(end_at) if end_at else end_at
        self.rules.validate_shift(employee_id, shift_type_id, start_at, end_at)

        now = utcnow()
        shift = Shift(
            employee_id=employee_id,
            shift_type_id=shift_type_id,
            start_at=start_at,
            end_at=end_at,
            notes=notes,
            created_by_user_id=actor_user_id,
            updated_by_user_id=actor_user_id,
            created_at=now,
            updated_at=now,
        )
        self.repo.add(shift)
        self._verify_after_write(shift)
        self.repo.commit()
        log.info("shift %s created for employee %s", shift.id, employee_id)
        return shift

    def update_shift(self, shift_id: int, employee_id: int, start_at, end_at,
                     shift_type_id: Optional[int] = None, notes: Optional[str] = None,
                     actor_user_id: Optional[int] = None, expected_version: Optional[int] = None) -> Shift:
        shift = self.get_shift(shift_id)
        if expected_version is not None and expected_version != shift.version:
            raise Conflict("The shift record was modified by another user.")

        start_at = as_utc(start_at) if start_at else start_at
        end_at = as_utc(end_at) if end_at else end_at
        # references are only re-checked when they change
        self.rules.validate_shift(
            employee_id, shift_type_id, start_at, end_at,
            exclude_shift_id=shift.id,
            check_employee=employee_id != shift.employee_id,
            check_shift_type=shift_type_id != shift.shift_type_id,
        )

        shift.employee_id = employee_id
        shift.shift_type_id = shift_type_id
        shift.start_at = start_at
        shift.end_at = end_at
        shift.notes = notes
        shift.updated_at = utcnow()
        shift.updated_by_user_id = actor_user_id
        self._verify_after_write(shift)
        self.repo.commit()
        return shift

    def delete_shift(self, shift_id: int) -> None:
        shift = self.get_shift(shift_id)
        self.repo.remove(shift)
        self.repo.commit()
        log.info("shift %s deleted", shift_id)

    def employee_names(self, shifts: List[Shift]) -> dict:
        return {k: e.full_name for k, e in self.repo.by_ids(Employee, {s.employee_id for s in shifts}).items()}
