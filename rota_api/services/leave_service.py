# rota_api/services/leave_service.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Tuple

from rota_api.common.errors import Conflict, InvalidStateTransition, NotFound, ValidationError
from rota_api.models.leave import LeaveRequest, LeaveStatus
from rota_api.repository import Repository
from rota_api.services import access_scope, leave_status
from rota_api.services.access_scope import DENY, Actor
from rota_api.services.conflict_rules import ConflictRules
from rota_api.services.time_window import as_utc, query_window, utcnow

log = logging.getLogger(__name__)


class LeaveRequestService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.rules = ConflictRules(repo)

    # ---------- reads ----------
    def list_requests(self, actor: Actor, employee_id: Optional[int] = None,
                      status: Optional[LeaveStatus] = None,
                      start_date: Optional[date] = None, end_date: Optional[date] = None,
                      leave_type_id: Optional[int] = None,
                      team_id: Optional[int] = None) -> List[LeaveRequest]:
        scoped = access_scope.read_scope(actor, employee_id)
        if scoped is DENY:
            return []

        criteria = []
        if scoped is not None:
            criteria.append(LeaveRequest.employee_id == scoped)
        if team_id is not None:
            criteria.append(LeaveRequest.employee_id.in_(self.repo.team_member_ids(team_id)))
        if status is not None:
            parsed = LeaveStatus.parse(status)
            if parsed is None:
                raise ValidationError(f"Unknown leave status '{status}'.", payload={"field": "status"})
            criteria.append(LeaveRequest.status == parsed.value)
        if leave_type_id is not None:
            criteria.append(LeaveRequest.leave_type_id == leave_type_id)
        if start_date and end_date:
            ws, we = query_window(start_date, end_date)
            criteria += [LeaveRequest.start_at < we, LeaveRequest.end_at > ws]

        return self.repo.find(LeaveRequest, *criteria,
                              order_by=(LeaveRequest.requested_at.desc(), LeaveRequest.id.desc()))

    def _load(self, request_id: int) -> LeaveRequest:
        lr = self.repo.get(LeaveRequest, request_id)
        if lr is None:
            raise NotFound(f"Leave request with ID {request_id} not found.")
        return lr

    def get_request(self, actor: Actor, request_id: int) -> LeaveRequest:
        lr = self._load(request_id)
        # someone else's request is reported as missing
        if not access_scope.can_see_employee(actor, lr.employee_id):
            raise NotFound(f"Leave request with ID {request_id} not found.")
        return lr

    # ---------- writes ----------
    def create_request(self, actor: Actor, employee_id: int, leave_type_id: int, start_at, end_at,
                       reason: Optional[str] = None) -> Tuple[LeaveRequest, List[str]]:
        access_scope.ensure_can_create(actor, employee_id)
        start_at = as_utc(start_at) if start_at else start_at
        end_at = as_utc(end_at) if end_at else end_at
        warnings = self.rules.validate_leave(employee_id, leave_type_id, start_at, end_at)

        now = utcnow()
        lr = LeaveRequest(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            start_at=start_at,
            end_at=end_at,
            reason=reason,
            status=LeaveStatus.PENDING.value,
            requested_at=now,
            created_by_user_id=actor.user_id,
            updated_by_user_id=actor.user_id,
            created_at=now,
            updated_at=now,
        )
        self.repo.add(lr)
        self.repo.commit()
        log.info("leave request %s submitted for employee %s", lr.id, employee_id)
        return lr, warnings

    def update_request(self, actor: Actor, request_id: int, leave_type_id: int, start_at, end_at,
                       reason: Optional[str] = None) -> Tuple[LeaveRequest, List[str]]:
        """Edit dates/type/reason of a request that is still Pending."""
        lr = self._load(request_id)
        access_scope.ensure_can_modify(actor, lr.employee_id)
        if lr.leave_status != LeaveStatus.PENDING:
            raise InvalidStateTransition(f"Only pending requests can be edited. Current status: {lr.status}.")

        start_at = as_utc(start_at) if start_at else start_at
        end_at = as_utc(end_at) if end_at else end_at
        warnings = self.rules.validate_leave(lr.employee_id, leave_type_id, start_at, end_at,
                                             exclude_leave_request_id=lr.id)
        lr.leave_type_id = leave_type_id
        lr.start_at = start_at
        lr.end_at = end_at
        lr.reason = reason
        lr.updated_at = utcnow()
        lr.updated_by_user_id = actor.user_id
        self.repo.commit()
        return lr, warnings

    def update_status(self, actor: Actor, request_id: int, new_status,
                      approver_notes: Optional[str] = None) -> LeaveRequest:
        access_scope.ensure_privileged(actor)
        lr = self._load(request_id)
        target = leave_status.ensure_decision(lr, new_status)

        if target == LeaveStatus.APPROVED:
            # other leave may have been approved since this one was submitted
            if self.rules.approved_leave_overlap_exists(lr.employee_id, lr.start_at, lr.end_at,
                                                        exclude_leave_request_id=lr.id):
                raise Conflict("Cannot approve: Employee already has overlapping approved leave "
                               "during this time period.")

        leave_status.decide(lr, target, actor.user_id, approver_notes, utcnow())

        if target == LeaveStatus.APPROVED:
            self.repo.flush()
            if self.rules.approved_leave_overlap_exists(lr.employee_id, lr.start_at, lr.end_at,
                                                        exclude_leave_request_id=lr.id):
                self.repo.rollback()
                raise Conflict("Cannot approve: overlapping leave was approved concurrently.")
        self.repo.commit()
        return lr

    def cancel_request(self, actor: Actor, request_id: int) -> LeaveRequest:
        lr = self._load(request_id)
        # state is checked before ownership
        leave_status.ensure_cancellable(lr)
        access_scope.ensure_can_modify(actor, lr.employee_id)
        leave_status.cancel(lr, actor.user_id, utcnow())
        self.repo.commit()
        return lr
