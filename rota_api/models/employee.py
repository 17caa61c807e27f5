from rota_api.extensions import db
from rota_api.services.time_window import utcnow


class Team(db.Model):
    __tablename__ = "teams"

    id          = db.Column(db.Integer, primary_key=True)
    name        = db.Column(db.String(100), unique=True, nullable=False)  # unique case-insensitively (checked in directory)
    description = db.Column(db.Text)
    created_at  = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at  = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Employee(db.Model):
    __tablename__ = "employees"

    id         = db.Column(db.Integer, primary_key=True)
    # deleting a team nulls member references, never deletes employees
    team_id    = db.Column(db.Integer, db.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)

    first_name = db.Column(db.String(100), nullable=False)
    last_name  = db.Column(db.String(100), nullable=False)
    email      = db.Column(db.String(255), nullable=True)
    phone      = db.Column(db.String(50), nullable=True)
    is_active  = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
