from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from authlib.integrations.flask_client import OAuth
import os

# Flask extensions singletons

db = SQLAlchemy()
migrate = Migrate()
oauth = OAuth()

# Configure allowed origins from env (comma-separated). In production avoid wildcard.
# Determine allowed origins
_allowed = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
_origins = [o.strip() for o in _allowed.split(",") if o.strip()] if _allowed else []
if not _origins:
    # Fallback defaults for local development
    env = os.getenv("FLASK_ENV", "development").lower()
    if env != "production":
        _origins = [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
cors = CORS(resources={r"*": {"origins": _origins}})


def register_oauth_clients(app) -> None:
    """Register the Google OpenID Connect client used for sign-in."""
    oauth.init_app(app)
    oauth.register(
        name="google",
        client_id=app.config.get("GOOGLE_CLIENT_ID"),
        client_secret=app.config.get("GOOGLE_CLIENT_SECRET"),
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
        overwrite=True,
    )
