import os
from collections.abc import Mapping
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect
from flask_wtf.csrf import CSRFError

load_dotenv()
db = SQLAlchemy()
login_manager = LoginManager()
storage_uri = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
limiter = Limiter(key_func=get_remote_address, storage_uri=storage_uri)
csrf = CSRFProtect()

DEFAULT_TIMEZONE = "UTC"
DEFAULT_PHONE_REGION = "US"
DEFAULT_CURRENCY_SYMBOL = "€"
# Reconcile overdue invoices once a day unless configured otherwise.
DEFAULT_SCHEDULER_INTERVAL = 60 * 60 * 24


def _get_bool_env(var_name: str, default: bool = False) -> bool:
    """Return a boolean environment variable value."""

    value = os.getenv(var_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(var_name: str, default: int) -> int:
    value = os.getenv(var_name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


@login_manager.user_loader
def load_user(user_id):
    """Retrieve a user by ID for Flask-Login."""
    from invoice_tracker.models import User

    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Authentication required."}), 401


def _database_uri(base_dir: str) -> str:
    # DATABASE_PATH may point at a file or at a directory (e.g. a mounted
    # volume); in the latter case the SQLite file lives inside it.
    default_db_path = os.path.join(base_dir, "invoices.db")
    db_path = os.getenv("DATABASE_PATH", default_db_path)
    if os.path.isdir(db_path):
        db_path = os.path.join(db_path, "invoices.db")
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    return f"sqlite:///{os.path.abspath(db_path)}"


def _load_stored_settings(app: Flask) -> None:
    """Let values saved in the ``Setting`` table override the defaults."""
    from sqlalchemy.exc import OperationalError

    from invoice_tracker.models import Setting

    try:
        for name in ("DEFAULT_TIMEZONE", "CURRENCY_SYMBOL"):
            stored = Setting.get_value(name)
            if stored:
                app.config[name] = stored
    except OperationalError:
        app.logger.warning("Settings table unavailable; using defaults")


def create_app(args: list, config: Mapping | None = None):
    """Application factory used by Flask."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY")
    default_secure_cookies = "--demo" not in args
    session_cookie_secure = _get_bool_env(
        "SESSION_COOKIE_SECURE", default=default_secure_cookies
    )
    app.config.update(
        SESSION_COOKIE_SECURE=session_cookie_secure,
        REMEMBER_COOKIE_SECURE=session_cookie_secure,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        PERMANENT_SESSION_LIFETIME=timedelta(minutes=30),
        DEMO="--demo" in args,
        SQLALCHEMY_DATABASE_URI=_database_uri(os.getcwd()),
        DEFAULT_TIMEZONE=os.getenv("DEFAULT_TIMEZONE", DEFAULT_TIMEZONE),
        PHONE_DEFAULT_REGION=os.getenv(
            "PHONE_DEFAULT_REGION", DEFAULT_PHONE_REGION
        ),
        CURRENCY_SYMBOL=os.getenv("CURRENCY_SYMBOL", DEFAULT_CURRENCY_SYMBOL),
        OVERDUE_SCHEDULER_ENABLED=_get_bool_env(
            "OVERDUE_SCHEDULER_ENABLED", default=False
        ),
        OVERDUE_SCHEDULER_INTERVAL=_get_int_env(
            "OVERDUE_SCHEDULER_INTERVAL", DEFAULT_SCHEDULER_INTERVAL
        ),
    )
    if config:
        app.config.update(config)
    if app.config.get("TESTING"):
        app.config["RATELIMIT_ENABLED"] = False

    db.init_app(app)
    from flask_migrate import Migrate

    Migrate(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)
    csrf.init_app(app)

    @app.after_request
    def apply_security_headers(response):
        """Attach standard security headers to every response."""
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        return response

    @app.before_request
    def block_http_options():
        """Return a 405 for HTTP OPTIONS requests to reduce information leakage."""
        if request.method == "OPTIONS":
            return Response(status=405)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return jsonify({"error": error.description}), 400

    with app.app_context():
        # Create the schema on start so the app runs before migrations do.
        from . import models  # noqa: F401

        db.create_all()
        _load_stored_settings(app)

        from invoice_tracker.routes.auth_routes import auth
        from invoice_tracker.routes.invoice_routes import invoice

        app.register_blueprint(auth, url_prefix="/auth")
        app.register_blueprint(invoice)

        from invoice_tracker.cli import invoices_cli

        app.cli.add_command(invoices_cli)

        from invoice_tracker.utils.scheduler import start_overdue_scheduler

        start_overdue_scheduler(app)

    return app
