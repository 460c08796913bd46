"""Blueprint registration helper."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import Flask, jsonify

from interview_api.database import mongodb_enabled

from .admin import bp as admin_bp
from .college import bp as college_bp
from .sessions import bp as sessions_bp
from .share import bp as share_bp


def register_routes(app: Flask) -> None:
    """Register all application blueprints on the provided Flask app."""
    app.register_blueprint(sessions_bp)
    app.register_blueprint(share_bp)
    app.register_blueprint(college_bp)
    app.register_blueprint(admin_bp)

    @app.get("/")
    def index():
        return jsonify(message="Interview session API"), 200

    @app.get("/api/health")
    def health():
        return (
            jsonify(
                status="ok",
                timestamp=datetime.now(timezone.utc).isoformat(),
                services={"mongodb": mongodb_enabled()},
            ),
            200,
        )
