# rota_api/services/leave_status.py
"""
Leave request lifecycle.

    Pending  -> Approved | Rejected | Cancelled
    Approved -> Cancelled
    Rejected, Cancelled: terminal
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from rota_api.common.errors import InvalidStateTransition
from rota_api.models.leave import LeaveRequest, LeaveStatus

log = logging.getLogger(__name__)

TRANSITIONS = {
    LeaveStatus.PENDING: {LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED},
    LeaveStatus.APPROVED: {LeaveStatus.CANCELLED},
    LeaveStatus.REJECTED: set(),
    LeaveStatus.CANCELLED: set(),
}

DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)

CANCELLED_AFTER_APPROVAL_NOTE = "[Cancelled after approval]"


def can_transition(current: LeaveStatus, target: LeaveStatus) -> bool:
    return target in TRANSITIONS.get(current, set())


def _stamp(leave: LeaveRequest, user_id: Optional[int], now: datetime):
    leave.updated_at = now
    leave.updated_by_user_id = user_id


def ensure_decision(leave: LeaveRequest, target) -> LeaveStatus:
    """Validate an approve/reject request without touching the row."""
    target = LeaveStatus.parse(target)
    if target not in DECISIONS:
        raise InvalidStateTransition("Status can only be updated to 'Approved' or 'Rejected'.")
    current = leave.leave_status
    if current != LeaveStatus.PENDING:
        raise InvalidStateTransition(
            f"Leave request must be in 'Pending' status to be approved or rejected. "
            f"Current status: {leave.status}."
        )
    return target


def decide(leave: LeaveRequest, target, approver_user_id: int,
           notes: Optional[str], now: datetime) -> LeaveRequest:
    target = ensure_decision(leave, target)
    leave.status = target.value
    leave.approver_user_id = approver_user_id
    leave.approved_at = now
    leave.approver_notes = notes
    _stamp(leave, approver_user_id, now)
    log.info("leave %s %s by user %s", leave.id, target.value.lower(), approver_user_id)
    return leave


def ensure_cancellable(leave: LeaveRequest) -> LeaveStatus:
    current = leave.leave_status
    if not can_transition(current, LeaveStatus.CANCELLED):
        raise InvalidStateTransition(f"Cannot cancel request in '{leave.status}' status.")
    return current


def cancel(leave: LeaveRequest, actor_user_id: int, now: datetime) -> LeaveRequest:
    current = ensure_cancellable(leave)

    if current == LeaveStatus.APPROVED:
        leave.approver_user_id = None
        leave.approved_at = None
        leave.approver_notes = " ".join(filter(None, [leave.approver_notes, CANCELLED_AFTER_APPROVAL_NOTE]))

    leave.status = LeaveStatus.CANCELLED.value
    _stamp(leave, actor_user_id, now)
    log.info("leave %s cancelled by user %s (was %s)", leave.id, actor_user_id, current.value)
    return leave
