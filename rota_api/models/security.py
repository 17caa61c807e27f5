# rota_api/models/security.py
from rota_api.extensions import db

ADMIN_ROLE = "Admin"

# permission code -> Role capability flag
PERMISSION_FLAGS = {
    "rota.edit": "can_edit_rota",
    "rota.view": "can_view_rota",
    "leave.edit": "can_edit_leave",
    "leave.view": "can_view_leave",
    "leave.approve": "can_approve_leave",
}


class Role(db.Model):
    __tablename__ = "roles"

    id   = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)  # e.g., "Admin", "Employee"

    can_edit_rota     = db.Column(db.Boolean, nullable=False, default=False)
    can_edit_leave    = db.Column(db.Boolean, nullable=False, default=False)
    can_approve_leave = db.Column(db.Boolean, nullable=False, default=False)
    can_view_rota     = db.Column(db.Boolean, nullable=False, default=True)
    can_view_leave    = db.Column(db.Boolean, nullable=False, default=True)

    description = db.Column(db.Text)

    @property
    def is_admin(self) -> bool:
        return (self.name or "").lower() == ADMIN_ROLE.lower()

    def permission_codes(self) -> set[str]:
        return {code for code, flag in PERMISSION_FLAGS.items() if getattr(self, flag)}

    def __repr__(self) -> str:
        return f"<Role id={self.id} name={self.name!r}>"
