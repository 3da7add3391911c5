from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class User(db.Model):
    """
    User accounts for authentication and attribution.

    MULTI-TENANT: Users belong to exactly one business (business_id).
    Usernames and emails are unique across all businesses because login
    accepts either one without naming a business.

    `password_hash` normally holds a bcrypt hash. Rows imported from the
    legacy system may still hold the plaintext password; the credential
    store migrates them on the first successful login.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_business_role", "business_id", "role"),
        {"sqlite_autoincrement": True},
    )

    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.Integer, nullable=False, unique=True, index=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)

    username = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)

    # admin | manager | employee
    role = db.Column(db.String(16), nullable=False, default="employee")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # {"pos": bool, "inventory": bool, "customers": bool, "reports": bool,
    #  "employees": bool, "settings": bool}
    permissions = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "is_active": self.is_active,
            "permissions": dict(self.permissions or {}),
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "is_active": self.is_active,
        }
