import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from myka.api import register_blueprints
from myka.errors import MykaError

logger = logging.getLogger(__name__)


def create_app(runtime=None) -> Flask:
    """Flask app serving the JSON API on top of ``runtime``."""
    if runtime is None:
        from myka.runtime import build_runtime

        runtime = build_runtime()

    app = Flask(__name__)
    app.extensions["myka"] = runtime
    register_blueprints(app)

    @app.errorhandler(MykaError)
    def handle_myka_error(e: MykaError):
        if e.status_code >= 500:
            logger.warning("%s: %s", type(e).__name__, e.message)
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error: %s", e)
        return jsonify({"error": "Internal server error"}), 500

    @app.get("/health")
    def health():
        return jsonify({
            "status": "ok",
            "notifications": runtime.platform.capability.value,
            "scheduler": "running" if runtime.apscheduler.running else "stopped",
        })

    return app
