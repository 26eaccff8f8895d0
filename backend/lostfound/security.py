from __future__ import annotations

from typing import Callable, Iterable, Optional, Tuple
from flask import current_app
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

# A role policy maps a signed-in email to "admin" or "user".
RolePolicy = Callable[[str], str]


def _serializer() -> URLSafeTimedSerializer:
    secret = current_app.config.get("SECRET_KEY") or "change-me"
    # Salt provides namespace isolation for tokens
    return URLSafeTimedSerializer(secret_key=secret, salt="auth-token")


def issue_token(user_id: int, role: str) -> str:
    """Issue a signed token for a user.

    Payload is minimal: {"id": int, "role": str}
    """
    s = _serializer()
    return s.dumps({"id": int(user_id), "role": str(role or "user")})


def verify_token(token: str) -> Tuple[Optional[int], Optional[str]]:
    """Verify a token and return (user_id, role) if valid, else (None, None).

    Max age comes from AUTH_TOKEN_MAX_AGE seconds (default 30 days).
    """
    try:
        max_age = int(current_app.config.get("AUTH_TOKEN_MAX_AGE") or 60 * 60 * 24 * 30)
    except (TypeError, ValueError):
        max_age = 60 * 60 * 24 * 30
    try:
        data = _serializer().loads(token, max_age=max_age)
        uid = int(data.get("id")) if isinstance(data, dict) and data.get("id") is not None else None
        role = str(data.get("role")) if isinstance(data, dict) and data.get("role") is not None else None
        return (uid, role)
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        return (None, None)


class AllowListPolicy:
    """Grant the admin role to a fixed set of email addresses."""

    def __init__(self, admin_emails: Iterable[str] = ()):
        self.admin_emails = frozenset(e.strip().lower() for e in admin_emails if e and e.strip())

    @classmethod
    def from_config(cls, raw: str | None) -> "AllowListPolicy":
        return cls((raw or "").split(","))

    def __call__(self, email: str) -> str:
        return "admin" if (email or "").strip().lower() in self.admin_emails else "user"


def role_policy() -> RolePolicy:
    """The policy installed on the running app by create_app."""
    return current_app.extensions["lostfound.role_policy"]
