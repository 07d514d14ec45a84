"""Flask web app for the product catalog generator.

Turns a product page URL into an editable catalog (scraped data, LLM copy,
images, content blocks) and exports it as PDF or DOCX.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Any, Optional, Tuple

from dotenv import load_dotenv
from flask import Flask, Response, current_app, jsonify, render_template, request, send_from_directory
from werkzeug.exceptions import RequestEntityTooLarge

# Load environment variables from .env file (explicitly specify path)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from .api import api  # noqa: E402
from .config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, AppSettings  # noqa: E402

__all__ = ["create_app"]

logger = logging.getLogger(__name__)


# ---------- BASIC AUTH ----------


def _unauthorized() -> Response:
    return Response(
        "Authentication required",
        401,
        {"WWW-Authenticate": 'Basic realm="Login Required"'},
    )


def require_basic_auth() -> Optional[Response]:
    """
    Enforce HTTP Basic Auth for all routes.
    Skips enforcement if credentials are not configured (DEMO_USER/DEMO_PASS unset).
    """
    settings: AppSettings = current_app.config["CATALOG_SETTINGS"]
    user, password = settings.demo_user, settings.demo_pass
    if not user or not password:
        return None  # auth disabled

    header = request.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return _unauthorized()

    try:
        decoded = base64.b64decode(header.split(" ", 1)[1]).decode("utf-8")
        username, passwd = decoded.split(":", 1)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return _unauthorized()

    if username == user and passwd == password:
        return None
    return _unauthorized()


# ---------- FLASK ROUTES ----------


def index() -> str:
    """Render the catalog editor page."""
    return render_template("index.html")


def health() -> Any:
    return jsonify({"status": "OK"})


def uploaded_file(filename: str) -> Response:
    """Serve a stored upload or optimized variant."""
    settings: AppSettings = current_app.config["CATALOG_SETTINGS"]
    return send_from_directory(Path(settings.upload_dir).resolve(), filename)


def too_large(e: RequestEntityTooLarge) -> Tuple[Response, int]:
    return jsonify({
        "success": False,
        "error": "Upload too large",
        "message": "Each image must be under 10MB and at most 15 images per request.",
    }), 413


def create_app(settings: Optional[AppSettings] = None) -> Flask:
    """Create the Flask app.

    Args:
        settings: Explicit settings; read from the environment when omitted.
    """
    settings = settings or AppSettings.from_env()

    app = Flask(__name__)
    app.config["CATALOG_SETTINGS"] = settings
    app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length
    app.config.update(settings.extra)

    app.before_request(require_basic_auth)
    app.add_url_rule("/", "index", index, methods=["GET"])
    app.add_url_rule("/health", "health", health, methods=["GET"])
    app.add_url_rule("/uploads/<path:filename>", "uploaded_file", uploaded_file, methods=["GET"])
    app.register_error_handler(RequestEntityTooLarge, too_large)
    app.register_blueprint(api)

    logger.debug("Catalog app created (uploads: %s, logs: %s)", settings.upload_dir, settings.log_dir)
    return app


if __name__ == "__main__":
    # For local demo use FLASK_DEBUG=true if you like
    create_app().run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
