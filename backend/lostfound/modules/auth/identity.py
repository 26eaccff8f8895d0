from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ...extensions import db
from ...models.types import utcnow
from ...models.user import User
from ...security import role_policy


def _upsert(email: str, full_name: str | None, email_verified: bool, role: str) -> User:
    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email)
        db.session.add(user)
    if full_name:
        user.full_name = full_name
    user.role = role
    user.email_verified = bool(email_verified)
    user.last_login_at = utcnow()
    db.session.commit()
    return user


def sync_user(email: str, full_name: str | None = None, email_verified: bool = True) -> User:
    """Upsert the local user record for a successful sign-in.

    The email is the conflict key. The role is recomputed by the app's role
    policy on every sign-in, so removing someone from the admin list takes
    effect at their next login.
    """
    email = (email or "").strip().lower()
    if not email:
        raise ValueError("email is required")
    role = role_policy()(email)
    try:
        return _upsert(email, full_name, email_verified, role)
    except IntegrityError:
        # Another sign-in inserted the same email first; retry as an update
        db.session.rollback()
        current_app.logger.warning("Concurrent sign-in for %s, retrying upsert", email)
        return _upsert(email, full_name, email_verified, role)
