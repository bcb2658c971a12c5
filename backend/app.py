from __future__ import annotations

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from raffle.errors import (
    AlreadyConfigured,
    RaffleError,
    RaffleTerminated,
    SoldOut,
    TransferFailed,
    Unauthorized,
)

from .config import load_settings
from .db import engine
from .models import Base
from .routes.admin import bp as admin_bp
from .routes.config import bp as config_bp
from .routes.health import bp as health_bp
from .routes.raffles import bp as raffles_bp
from .services.raffles import RaffleNotFound

ERROR_STATUS = {
    Unauthorized: 403,
    RaffleNotFound: 404,
    SoldOut: 409,
    AlreadyConfigured: 409,
    RaffleTerminated: 409,
    TransferFailed: 502,
}


def status_for(exc: RaffleError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 400


def create_app() -> Flask:
    settings = load_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.flask.secret_key
    Base.metadata.create_all(engine)

    app.register_blueprint(health_bp)
    app.register_blueprint(raffles_bp, url_prefix="/raffles")
    app.register_blueprint(admin_bp, url_prefix="/admin/api")
    app.register_blueprint(config_bp)

    @app.errorhandler(RaffleError)
    def handle_raffle_error(exc: RaffleError):
        status = status_for(exc)
        app.logger.info("Raffle operation rejected (%s): %s", exc.code, exc)
        return jsonify({"error": str(exc), "code": exc.code}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        details = exc.errors(include_url=False, include_context=False)
        return jsonify({"error": "invalid request", "details": details}), 400

    @app.errorhandler(ValueError)
    def handle_value_error(exc: ValueError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(Exception)
    def handle_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify({"error": str(exc)}), 500

    return app
