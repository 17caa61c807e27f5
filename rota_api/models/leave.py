from enum import Enum

from rota_api.extensions import db
from rota_api.services.time_window import utcnow


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, raw):
        if isinstance(raw, cls):
            return raw
        for s in cls:
            if str(raw or "").strip().lower() == s.value.lower():
                return s
        return None


class LeaveType(db.Model):
    __tablename__ = "leave_types"

    id                = db.Column(db.Integer, primary_key=True)
    name              = db.Column(db.String(100), unique=True, nullable=False)
    requires_approval = db.Column(db.Boolean, nullable=False, default=True)
    description       = db.Column(db.Text)


class LeaveRequest(db.Model):
    __tablename__ = "leave_requests"

    id            = db.Column(db.Integer, primary_key=True)
    employee_id   = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = db.Column(db.Integer, db.ForeignKey("leave_types.id", ondelete="RESTRICT"), nullable=False, index=True)

    start_at = db.Column(db.DateTime, nullable=False, index=True)
    end_at   = db.Column(db.DateTime, nullable=False)
    reason   = db.Column(db.Text)
    status   = db.Column(db.String(20), nullable=False, default=LeaveStatus.PENDING.value, index=True)  # Pending|Approved|Rejected|Cancelled
    requested_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    approver_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    approved_at      = db.Column(db.DateTime)
    approver_notes   = db.Column(db.Text)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    version = db.Column(db.Integer, nullable=False, default=1)

    __table_args__ = (
        db.CheckConstraint("start_at < end_at", name="ck_leave_start_before_end"),
        db.Index("ix_leave_employee_window", "employee_id", "start_at", "end_at"),
    )
    __mapper_args__ = {"version_id_col": version}

    @property
    def leave_status(self) -> LeaveStatus:
        return LeaveStatus.parse(self.status)
