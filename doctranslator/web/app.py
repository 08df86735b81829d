"""Flask application configuration and blueprint registration."""

from __future__ import annotations

from flask import Flask, jsonify

from doctranslator.core.schema import DB_VERSION, get_db_version
from doctranslator.exceptions import (
    CacheError,
    ClassificationConfigError,
    NotFoundError,
    ProviderError,
    SourceUnreachableError,
    TranslationError,
)
from doctranslator.logger import get_logger

from .routes.approvals import approvals_bp
from .routes.rules import rules_bp
from .routes.translation import translation_bp
from .services import EXTENSION_KEY, build_services

logger = get_logger(__name__)


def build_app(**services) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Ensure JSON responses keep Unicode data.
    app.config["JSON_AS_ASCII"] = False
    app.json.ensure_ascii = False

    app.extensions[EXTENSION_KEY] = build_services(**services)

    register_blueprints(app)
    register_default_routes(app)
    register_error_handlers(app)

    return app


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    app.register_blueprint(translation_bp, url_prefix="/api")
    app.register_blueprint(approvals_bp, url_prefix="/api/approvals")
    app.register_blueprint(rules_bp, url_prefix="/api/rules")


def register_default_routes(app: Flask) -> None:
    """Register the health route."""

    @app.get("/health")
    def health_check():
        logger.debug("Health check requested")
        return jsonify({"status": "ok", "db_version": get_db_version(), "expected_db_version": DB_VERSION})


def status_for_error(error: TranslationError) -> int:
    """HTTP status for a translation error."""
    if isinstance(error, SourceUnreachableError):
        return 502
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ClassificationConfigError):
        return 400
    if isinstance(error, ProviderError):
        return 502
    if isinstance(error, CacheError):
        return 503
    return 400


def register_error_handlers(app: Flask) -> None:
    """Map the error taxonomy to JSON responses."""

    @app.errorhandler(TranslationError)
    def handle_translation_error(e: TranslationError):
        status = status_for_error(e)
        if status >= 500:
            logger.error(f"Request failed ({e.code}): {e}")
        else:
            logger.warning(f"Request rejected ({e.code}): {e}")
        return jsonify(e.to_dict()), status

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({"error": "Not found", "code": "not_found"}), 404

    @app.errorhandler(500)
    def internal_error(e):
        logger.exception("Internal server error: %s", e)
        return jsonify({"error": "Internal server error", "code": "internal_error"}), 500
