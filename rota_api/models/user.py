from werkzeug.security import generate_password_hash, check_password_hash

from rota_api.extensions import db
from rota_api.services.time_window import utcnow


class User(db.Model):
    __tablename__ = "users"

    id            = db.Column(db.Integer, primary_key=True)
    employee_id   = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), unique=True, nullable=False)
    username      = db.Column(db.String(100), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role_id       = db.Column(db.Integer, db.ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False)
    is_active     = db.Column(db.Boolean, nullable=False, default=True)
    last_login    = db.Column(db.DateTime)
    created_at    = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at    = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # --- helpers ---
    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return check_password_hash(self.password_hash, raw)
