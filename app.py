"""Application factory."""

import json
import logging
import os
import uuid

from flask import Flask, Response, jsonify, g, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from events import AccountSignals
from events.handlers import register_handlers
from models import db
from routes.users import users_bp
from services import AccountService, TokenService, TokenSettings, metrics
from services.email_service import EmailSender
from services.errors import AccountError, RateLimitExceeded
from tasks import celery_init_app

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure logging defaults for the application."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_handlers()
    celery_init_app(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Per-IP request limiting; each app instance gets its own key space
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        headers_enabled=app.config.get("RATELIMIT_HEADERS_ENABLED", True),
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Services
    _init_services(app)

    # Blueprints
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    # Health and metrics
    @app.route("/health", methods=["GET"])
    def health_check():
        components = {
            "database": _database_health(),
            "email": _email_health(app),
        }
        healthy = components["database"]["status"] == "UP"
        status_code = 200 if healthy else 503
        return (
            jsonify({"status": "ok" if healthy else "unavailable", "components": components}),
            status_code,
        )

    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        body, content_type = metrics.render_latest()
        return Response(body, content_type=content_type)

    # Errors
    _register_error_handlers(app)

    return app


def _init_services(app: Flask) -> None:
    """Build the account services and connect event receivers explicitly."""

    settings = TokenSettings.from_config(app.config)
    token_service = TokenService(settings.durations())
    signals = AccountSignals()
    register_handlers(signals, token_service)

    app.extensions["token_service"] = token_service
    app.extensions["account_signals"] = signals
    app.extensions["account_service"] = AccountService(token_service, signals, settings)


def _database_health() -> dict:
    """Run a trivial query; any database error reports the component DOWN."""

    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("Database health check failed: %s", exc)
        return {"status": "DOWN", "error": type(exc).__name__}
    return {"status": "UP"}


def _email_health(app: Flask) -> dict:
    """Report mail configuration without opening an SMTP connection."""

    sender = EmailSender.from_config(app.config)
    if not sender.enabled:
        return {"status": "UNKNOWN", "configured": False}
    return {"status": "UP", "configured": True, "host": sender.server, "port": sender.port}


def _error_response(status_code: int, payload: dict):
    request_id = g.get("request_id") or str(uuid.uuid4())
    payload["request_id"] = request_id
    response = jsonify(payload)
    response.status_code = status_code
    response.headers.setdefault("X-Request-ID", request_id)
    return response


def _register_jwt_handlers() -> None:
    """Render Flask-JWT-Extended rejections in the shared error shape."""

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _error_response(401, {"error": "unauthorized", "detail": reason})

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _error_response(401, {"error": "invalid_token", "detail": reason})

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _error_response(401, {"error": "token_expired", "detail": "Token has expired"})


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(AccountError)
    def _handle_account_error(error: AccountError):
        db.session.rollback()
        payload = {"error": error.error, "detail": error.message}
        payload.update(error.extra())
        response = _error_response(int(error.status_code), payload)
        if isinstance(error, RateLimitExceeded):
            response.headers["Retry-After"] = str(error.seconds_remaining)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        payload = {
            "error": getattr(error, "name", "Error"),
            "detail": error.description,
            "request_id": request_id,
        }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled application error", exc_info=error)
        return _error_response(
            500,
            {
                "error": "Internal Server Error",
                "detail": "An unexpected error occurred.",
            },
        )


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
