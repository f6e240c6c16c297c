# nocram/__init__.py
"""Flask application factory and extension initialization."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_apscheduler import APScheduler
from flask_mail import Mail
from flask_migrate import Migrate
from flask_security import Security, SQLAlchemyUserDatastore, user_registered
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect
from sqlalchemy import inspect, text

from config import get_config

# ---------------------------------------------------------------------------
# Extension instances (singletons that will be imported elsewhere)
# ---------------------------------------------------------------------------

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
mail = Mail()
security = Security()
scheduler = APScheduler()

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_app(test_config: dict | None = None):
    """Application factory used by run.py and WSGI servers."""

    load_dotenv()

    app = Flask(__name__)

    # Config
    if test_config is None:
        app.config.from_object(get_config())
    else:
        app.config.update(test_config)

    # Reminder engine defaults, so a partial test config still works
    app.config.setdefault("REMINDER_CRON_SCHEDULE", "0 9 * * *")
    app.config.setdefault("REMINDER_SCHEDULER_ENABLED", True)
    app.config.setdefault("REMINDER_RUN_ON_STARTUP", False)
    app.config.setdefault("REMINDER_LOOKAHEAD_DAYS", 7)
    app.config.setdefault("REMINDER_DEFAULT_DAYS", "7,2,1")
    app.config.setdefault("CLIENT_URL", "http://localhost:3000")

    # Logging defaults
    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)
    logging.getLogger("flask_security").setLevel(logging.INFO)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    # ---------------------------------------------------------------------
    # Extension init
    # ---------------------------------------------------------------------
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    mail.init_app(app)

    # APScheduler – no admin API; a late tick still runs, but never twice at once
    app.config.setdefault("SCHEDULER_API_ENABLED", False)
    app.config.setdefault("SCHEDULER_JOB_DEFAULTS", {
        "misfire_grace_time": 86_400,  # 24 h tolerance
        "coalesce": True,
        "max_instances": 1
    })

    from nocram.services.scheduler import ReminderScheduler

    reminder_scheduler = ReminderScheduler(scheduler)
    reminder_scheduler.init_app(app)
    app.extensions["reminder_scheduler"] = reminder_scheduler

    # ---------------------------------------------------------------------
    # Database bootstrap & security setup – inside app context
    # ---------------------------------------------------------------------
    with app.app_context():
        from nocram.models import User, Role  # avoid circular imports at top-level
        from nocram.services.preference_service import PreferenceService

        inspector = inspect(db.engine)
        if not inspector.has_table("users"):
            db.create_all()
            app.logger.info("Initial database tables created.")

        # Sanity query so we fail fast if DB unreachable
        db.session.execute(text("SELECT 1"))

        user_datastore = SQLAlchemyUserDatastore(db, User, Role)
        security.init_app(app, user_datastore)

        # Every new account starts with the default reminder offsets
        @user_registered.connect_via(app)  # pylint: disable=unused-variable
        def _create_notification_preferences(sender, user, **extra):  # noqa: ANN001
            PreferenceService.attach_defaults(user)

    # ---------------------------------------------------------------------
    # Blueprints
    # ---------------------------------------------------------------------
    from nocram.routes import bp as main_bp
    from nocram.routes.reminders import reminders_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(reminders_bp)
    csrf.exempt(reminders_bp)

    # ---------------------------------------------------------------------
    # Error handlers
    # ---------------------------------------------------------------------
    @app.errorhandler(404)
    def _404(e):  # noqa: D401
        if request.path.startswith("/api/"):
            return jsonify({"error": "Not Found", "message": str(e)}), 404
        return jsonify({"error": "Not Found"}), 404

    @app.errorhandler(500)
    def _500(e):  # noqa: D401
        logger.error("Unhandled 500: %s", e, exc_info=True)
        return jsonify({"error": "Internal Server Error"}), 500

    # ---------------------------------------------------------------------
    # Reminder scheduler
    # ---------------------------------------------------------------------
    if app.config["REMINDER_SCHEDULER_ENABLED"]:
        reminder_scheduler.start()
    else:
        app.logger.info("Reminder scheduler disabled via REMINDER_SCHEDULER_ENABLED")

    return app
