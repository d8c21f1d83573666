"""Application factory for the PraxisTax API."""

import logging
import os
from warnings import warn

from flask import Flask, jsonify
from flask_cors import CORS

from .http import register_error_handlers
from .routes import register_routes
from .routes.config import get_configuration_metadata

_LOGGER = logging.getLogger(__name__)

ORIGINS_ENV = "PRAXISTAX_ALLOWED_ORIGINS"


def _parse_allowed_origins(raw: str | None) -> list[str]:
    """Split the comma-separated allow-list, dropping blanks and duplicates."""

    if not raw:
        return []

    return sorted({origin.strip() for origin in raw.split(",") if origin.strip()})


def create_app() -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__)
    app.json.sort_keys = False

    allowed_origins = _parse_allowed_origins(os.getenv(ORIGINS_ENV))
    if allowed_origins:
        _LOGGER.info("CORS enabled for %s", ", ".join(allowed_origins))
    else:
        warn(
            f"{ORIGINS_ENV} is empty. No allowed origins configured; "
            "cross-origin requests will be rejected.",
            stacklevel=2,
        )

    # The API is consumed from the practice dashboard; /health stays same-origin.
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST"],
        allow_headers=["Content-Type", "Accept-Language"],
    )

    register_routes(app)
    register_error_handlers(app)

    @app.get("/health")
    def health_check():
        """Report liveness together with the configured tax years."""

        return jsonify({"status": "ok", **get_configuration_metadata()})

    return app
