import os
from flask import Flask, send_from_directory, abort, jsonify
from .config import get_config
from .extensions import db, migrate, cors, register_oauth_clients
from .security import AllowListPolicy, RolePolicy
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from dotenv import load_dotenv
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.middleware.proxy_fix import ProxyFix


def create_app(config_name: str | None = None, role_policy: RolePolicy | None = None) -> Flask:
    """Application factory.

    ``role_policy`` decides who is an administrator at sign-in; it defaults to
    an allow-list read from the ADMIN_EMAILS setting.
    """
    app = Flask(__name__)

    # Load config
    # Ensure .env is loaded before reading env vars
    load_dotenv()
    app.config.from_object(get_config(config_name))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Honor proxy headers from Nginx for correct url_for(_external=True) scheme/host
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)  # type: ignore[assignment]

    # Init extensions
    cors.init_app(app)
    db.init_app(app)
    migrate.init_app(app, db)
    register_oauth_clients(app)
    app.extensions["lostfound.role_policy"] = role_policy or AllowListPolicy.from_config(app.config.get("ADMIN_EMAILS"))

    # Models must be imported for migrations / create_all to see them
    from . import models  # noqa: F401

    # Register blueprints (v1 API)
    from .apis.v1 import register_api
    register_api(app)

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_e):
        return jsonify({"error": "Upload too large"}), 413

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/db-check")
    def db_check() -> dict:
        try:
            db.session.execute(text("SELECT 1"))
            return {"db": "ok"}
        except SQLAlchemyError as e:
            app.logger.exception("Database check failed")
            return {"db": "error", "message": str(e)}, 500

    # Ensure upload folder exists and serve uploads
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    @app.get("/uploads/<path:filename>")
    def uploads(filename: str):
        """Serve files stored by the local storage backend."""
        base = app.config["UPLOAD_FOLDER"]
        if os.path.isfile(os.path.join(base, filename)):
            return send_from_directory(base, filename)
        abort(404)

    return app
