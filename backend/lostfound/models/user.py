from sqlalchemy import func, false
from ..extensions import db
from .enums import role_enum
from .types import BigIntId, utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(BigIntId, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(200))
    role = db.Column(role_enum, nullable=False, default="user", server_default="user")
    email_verified = db.Column(db.Boolean, nullable=False, default=False, server_default=false())
    last_login_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"
