from rota_api.extensions import db
from rota_api.services.time_window import utcnow


class ShiftType(db.Model):
    __tablename__ = "shift_types"

    id          = db.Column(db.Integer, primary_key=True)
    name        = db.Column(db.String(100), unique=True, nullable=False)
    is_on_call  = db.Column(db.Boolean, nullable=False, default=False)
    description = db.Column(db.Text)


class Shift(db.Model):
    __tablename__ = "shifts"

    id            = db.Column(db.Integer, primary_key=True)
    employee_id   = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    shift_type_id = db.Column(db.Integer, db.ForeignKey("shift_types.id", ondelete="RESTRICT"), nullable=True, index=True)

    start_at = db.Column(db.DateTime, nullable=False, index=True)
    end_at   = db.Column(db.DateTime, nullable=False)
    notes    = db.Column(db.Text)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # optimistic concurrency token; a stale update raises StaleDataError on flush
    version = db.Column(db.Integer, nullable=False, default=1)

    __table_args__ = (
        db.CheckConstraint("start_at < end_at", name="ck_shift_start_before_end"),
        db.Index("ix_shift_employee_window", "employee_id", "start_at", "end_at"),
    )
    __mapper_args__ = {"version_id_col": version}
