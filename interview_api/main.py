"""Flask application setup and blueprint wiring."""

from __future__ import annotations

import os
import secrets

from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from interview_api.database import mongodb_enabled
from interview_api.errors import InterviewApiError
from interview_api.routes import register_routes
from interview_api.utils.responses import api_error

UPLOAD_LIMIT_BYTES = 4 * 1024 * 1024  # 4 MB per request, presence photos included


def register_error_handlers(app: Flask) -> None:
    """Render every failure as the standard error envelope."""

    @app.errorhandler(InterviewApiError)
    def _handle_api_error(exc: InterviewApiError):
        if exc.status_code >= 500:
            app.logger.error("Request failed: %s", exc, exc_info=exc)
        return api_error(exc.error, exc.message, exc.status_code, exc.details)

    @app.errorhandler(HTTPException)
    def _handle_http_error(exc: HTTPException):
        return api_error(exc.name, exc.description, exc.code or 500)

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        app.logger.exception("Unhandled error")
        return api_error("Internal server error", "An unexpected error occurred", 500)


def create_app() -> Flask:
    """Configure and return the Flask application instance."""
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    app.config["MAX_CONTENT_LENGTH"] = UPLOAD_LIMIT_BYTES
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY") or secrets.token_hex(32)

    register_error_handlers(app)
    register_routes(app)

    # Initialize MongoDB indexes if enabled
    if mongodb_enabled():
        try:
            from interview_api.services import audit_service, session_store, template_service

            with app.app_context():
                session_store.create_indexes()
                template_service.create_indexes()
                audit_service.create_indexes()
                app.logger.info("MongoDB indexes created successfully")
        except Exception as e:
            app.logger.warning(f"Failed to create MongoDB indexes: {e}")

    return app


app = create_app()
