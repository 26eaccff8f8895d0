from authlib.integrations.base_client.errors import OAuthError

from lostfound.extensions import db, oauth
from lostfound.models import User
from lostfound.modules.auth.identity import sync_user
from lostfound.security import AllowListPolicy, issue_token, verify_token

from conftest import ADMIN_EMAIL, auth_headers


class FakeGoogle:
    def __init__(self, token=None, error=None):
        self.token = token
        self.error = error

    def authorize_access_token(self):
        if self.error:
            raise self.error
        return self.token


def _use_google(monkeypatch, **kwargs):
    fake = FakeGoogle(**kwargs)
    monkeypatch.setattr(oauth, "create_client", lambda name: fake)
    return fake


def test_allow_list_policy():
    policy = AllowListPolicy(["  Admin@Campus.edu ", ""])
    assert policy("admin@campus.edu") == "admin"
    assert policy("ADMIN@campus.edu") == "admin"
    assert policy("student@campus.edu") == "user"
    assert AllowListPolicy.from_config("a@x.edu, b@x.edu")("b@x.edu") == "admin"
    assert AllowListPolicy.from_config(None)("a@x.edu") == "user"


def test_token_round_trip(app):
    token = issue_token(7, "admin")
    assert verify_token(token) == (7, "admin")
    assert verify_token(token + "x") == (None, None)


def test_sync_user_creates_and_updates(app):
    user = sync_user(" Student@Campus.edu ", "Sam Student")
    assert user.email == "student@campus.edu"
    assert user.role == "user"
    assert user.last_login_at is not None

    app.extensions["lostfound.role_policy"] = AllowListPolicy(["student@campus.edu"])
    again = sync_user("student@campus.edu")
    assert again.id == user.id
    assert again.role == "admin"
    assert again.full_name == "Sam Student"
    assert User.query.count() == 1


def test_admin_role_comes_from_policy(app):
    assert sync_user(ADMIN_EMAIL, "Ada Admin").role == "admin"


def test_callback_signs_user_in(client, monkeypatch):
    _use_google(monkeypatch, token={"userinfo": {"email": "new@campus.edu", "name": "New Student", "email_verified": True}})

    resp = client.get("/api/v1/auth/callback")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["email"] == "new@campus.edu"
    assert body["user"]["role"] == "user"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["fullName"] == "New Student"


def test_callback_redirects_to_frontend(app, client, monkeypatch):
    app.config["FRONTEND_PUBLIC_BASE_URL"] = "https://lostfound.campus.edu/"
    _use_google(monkeypatch, token={"userinfo": {"email": ADMIN_EMAIL}})

    resp = client.get("/api/v1/auth/callback")
    assert resp.status_code == 302
    assert resp.headers["Location"].startswith("https://lostfound.campus.edu/auth/callback#token=")
    assert db.session.query(User).filter_by(email=ADMIN_EMAIL).one().role == "admin"


def test_callback_without_email_is_rejected(client, monkeypatch):
    _use_google(monkeypatch, token={"userinfo": {"name": "No Email"}})
    assert client.get("/api/v1/auth/callback").status_code == 401
    assert User.query.count() == 0


def test_callback_provider_error(client, monkeypatch):
    _use_google(monkeypatch, error=OAuthError(error="access_denied"))
    resp = client.get("/api/v1/auth/callback")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Authentication failed. Please try again."


def test_login_requires_configuration(app, client):
    app.config["GOOGLE_CLIENT_ID"] = None
    assert client.get("/api/v1/auth/login").status_code == 503


def test_me_requires_valid_token(client, user):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nonsense"}).status_code == 401
    resp = client.get("/api/v1/auth/me", headers=auth_headers(user))
    assert resp.get_json()["user"]["email"] == "student@campus.edu"


def test_header_shortcut_only_in_debug(app, client, user):
    assert client.get("/api/v1/auth/me", headers={"X-User-Id": str(user.id)}).status_code == 401
    app.config["DEBUG"] = True
    assert client.get("/api/v1/auth/me", headers={"X-User-Id": str(user.id)}).status_code == 200
