from urllib.parse import quote

from authlib.integrations.base_client.errors import AuthlibBaseError
from flask import current_app, g, jsonify, redirect, url_for
from requests.exceptions import ConnectionError as RequestsConnectionError
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import oauth
from ...schemas.user import UserSchema
from ...security import issue_token
from . import bp
from .identity import sync_user

_user_schema = UserSchema()


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


@bp.get("/login")
def login():
    """Start the Google sign-in redirect."""
    google = oauth.create_client("google")
    if google is None or not current_app.config.get("GOOGLE_CLIENT_ID"):
        return _json_error("Sign-in is not configured", 503)
    try:
        redirect_uri = url_for("api_v1.auth.callback", _external=True)
        return google.authorize_redirect(redirect_uri)
    except RequestsConnectionError:
        current_app.logger.exception("Connection error while redirecting to Google")
        return _json_error("Unable to connect to Google. Please try again later.", 502)


@bp.get("/callback")
def callback():
    """Finish sign-in: upsert the user and hand out an API token."""
    google = oauth.create_client("google")
    if google is None:
        return _json_error("Sign-in is not configured", 503)
    try:
        token = google.authorize_access_token()
    except AuthlibBaseError:
        current_app.logger.exception("OAuth callback failed")
        return _json_error("Authentication failed. Please try again.", 401)
    except RequestsConnectionError:
        current_app.logger.exception("Connection error during OAuth callback")
        return _json_error("Unable to connect to the sign-in provider.", 502)

    profile = (token or {}).get("userinfo") or {}
    email = (profile.get("email") or "").strip()
    if not email:
        current_app.logger.warning("Sign-in response carried no email")
        return _json_error("Sign-in did not provide an email address", 401)

    try:
        user = sync_user(email, profile.get("name"), bool(profile.get("email_verified", True)))
    except SQLAlchemyError:
        current_app.logger.exception("Failed to store user %s during sign-in", email)
        return _json_error("An internal error occurred. Please try again later.", 500)

    api_token = issue_token(int(user.id), user.role)
    current_app.logger.info("User %s signed in as %s", user.email, user.role)

    frontend = current_app.config.get("FRONTEND_PUBLIC_BASE_URL")
    if frontend:
        return redirect(f"{frontend.rstrip('/')}/auth/callback#token={quote(api_token)}")
    return jsonify({"user": _user_schema.dump(user), "token": api_token})


@bp.get("/me")
def me():
    user = getattr(g, "current_user", None)
    if not user:
        return _json_error("Authentication required", 401)
    return jsonify({"user": _user_schema.dump(user)})
