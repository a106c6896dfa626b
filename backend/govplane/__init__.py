import logging
import os

from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from govplane.config import Config
from govplane.errors import GovernanceError
from govplane.extensions import db, migrate, cors, login_manager


def create_app(config_overrides=None):
    app = Flask(__name__)

    env = (os.getenv("GOVPLANE_ENV", "dev") or "dev").strip().lower()

    # Production safety checks
    if env in ("prod", "production"):
        secret = (os.getenv("SECRET_KEY") or "").strip()
        if not secret or len(secret) < 16:
            raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")
        if not (os.getenv("DATABASE_URL") or "").strip() and not (os.getenv("SQLALCHEMY_DATABASE_URI") or "").strip():
            raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")

    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Ensure instance dir exists for SQLite paths
    os.makedirs(Config.INSTANCE_DIR, exist_ok=True)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL") or "INFO").upper(), logging.INFO))

    # CORS configuration
    raw_origins = (app.config.get("ALLOWED_ORIGINS") or "*").strip()
    if env in ("prod", "production"):
        origins = [o.strip() for o in raw_origins.split(",") if o.strip() and o.strip() != "*"]
    else:
        origins = [o.strip() for o in raw_origins.split(",") if o.strip()] or ["*"]
    cors.init_app(app, resources={r"/api/*": {"origins": origins}})

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=os.path.join(Config.BACKEND_DIR, "migrations"))
    login_manager.init_app(app)

    from govplane import auth  # noqa: F401  (registers the login loaders)
    from govplane.segments.segment_governor_accounts import accounts_bp
    from govplane.segments.segment_account_flags import flags_bp
    from govplane.segments.segment_shadow_bans import bans_bp
    from govplane.segments.segment_system_controls import controls_bp
    from govplane.segments.segment_approvals import approvals_bp
    from govplane.segments.segment_audit_admin import audit_bp
    from govplane.segments.segment_governor_jobs import jobs_bp

    app.register_blueprint(accounts_bp)
    app.register_blueprint(flags_bp)
    app.register_blueprint(bans_bp)
    app.register_blueprint(controls_bp)
    app.register_blueprint(approvals_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(jobs_bp)

    @app.errorhandler(GovernanceError)
    def _governance_error(e):
        return jsonify(e.to_dict()), e.status_code

    # Health check
    @app.get("/api/health")
    def health():
        db_state = "ok"
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            app.logger.exception("health check: database unreachable")
            db_state = "fail"
        return jsonify({
            "ok": True,
            "service": "govplane-backend",
            "env": env,
            "db": db_state,
        })

    return app
