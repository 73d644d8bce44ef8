"""
IT Onboarding Checklist Service
Flask Application Factory.

Usage:
    from onboarding import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, render_template, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from werkzeug.exceptions import HTTPException

from onboarding.config import config
from onboarding.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from onboarding.middleware.access_gate import init_access_gate
from onboarding.middleware.jwt_auth import init_jwt_middleware
from onboarding.middleware.logging_config import configure_logging
from onboarding.middleware.rate_limiter import init_rate_limits
from onboarding.middleware.security_headers import init_security_headers
from onboarding.middleware.timing import init_request_timing
from onboarding.models import db
from onboarding.services.activity_service import ActivityDispatcher
from onboarding.utils.errors import E, api_error

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # limits are applied per blueprint
)
activity_dispatcher = ActivityDispatcher()


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder="../static",
        template_folder="../templates",
    )
    # Instantiate so ProductionConfig can refuse a missing DATABASE_URL / SECRET_KEY
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    os.makedirs(app.instance_path, exist_ok=True)
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    activity_dispatcher.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()], supports_credentials=True)
    else:
        CORS(app)

    # ── Security headers (CSP, HSTS, X-Frame-Options, etc.) ─────────────
    init_security_headers(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Identity, then the access gate (order matters) ───────────────────
    init_jwt_middleware(app)
    init_access_gate(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", 1 * 1024 * 1024)  # 1 MB

    @app.before_request
    def _guard_request():
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.get_data(cache=True) and "json" not in ct:
                return api_error(
                    E.UNSUPPORTED_MEDIA_TYPE, "Content-Type must be application/json"
                )
        return None

    # ── Import all models so Alembic can detect them ─────────────────────
    from onboarding.models import activity as _activity_models    # noqa: F401
    from onboarding.models import auth as _auth_models            # noqa: F401
    from onboarding.models import checklist as _checklist_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS; migrations own changes) ──
    with app.app_context():
        db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from onboarding.blueprints.admin_bp import admin_bp
    from onboarding.blueprints.auth_bp import auth_bp
    from onboarding.blueprints.checklist_bp import checklist_bp
    from onboarding.blueprints.logs_bp import logs_bp
    from onboarding.blueprints.pages_bp import pages_bp
    from onboarding.blueprints.progress_bp import progress_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(checklist_bp)
    app.register_blueprint(progress_bp)
    app.register_blueprint(logs_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(pages_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-checklist")
    def seed_checklist_cmd():
        """Seed the default Day 1–3 checklist items (idempotent)."""
        from onboarding.services.seed_service import seed_default_items
        count = seed_default_items()
        db.session.commit()
        click.echo(f"Seeded {count} new checklist items.")

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("password")
    @click.option("--name", default=None, help="Display name (default: Administrator)")
    def create_admin_cmd(email, password, name):
        """Create the first admin account, or promote an existing user."""
        from onboarding.services.user_service import create_admin
        user = create_admin(email, password, name)
        click.echo(f"Admin ready: {user.email} ({user.id})")

    # ── Health check ─────────────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return {"status": "ok", "app": "IT Onboarding Checklist"}

    _register_error_handlers(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app


def _register_error_handlers(app):
    """Map the exception taxonomy and HTTP errors to JSON bodies."""

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return api_error(E.VALIDATION_INVALID, str(e), details=e.details)

    @app.errorhandler(AuthenticationError)
    def handle_authentication(e):
        return api_error(E.UNAUTHENTICATED, str(e))

    @app.errorhandler(AuthorizationError)
    def handle_authorization(e):
        return api_error(E.FORBIDDEN, str(e))

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        logger.info("Not found: %s", e)
        return api_error(E.NOT_FOUND, f"{e.resource} not found")

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return api_error(E.CONFLICT_DUPLICATE, f"{e.resource} with this {e.field} already exists")

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return api_error(E.NOT_FOUND, "Not found")
        return render_template("not_found.html"), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests")

    @app.errorhandler(Exception)
    def unexpected_error(e):
        # Redirects, 413 and other HTTP errors keep their own response
        if isinstance(e, HTTPException):
            return e
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return api_error(E.INTERNAL, "Internal server error")
