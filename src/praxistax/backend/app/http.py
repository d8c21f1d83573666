"""Problem payloads and the error handlers that emit them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from flask import Flask, jsonify
from werkzeug.exceptions import BadRequest, NotFound

from praxistax.backend.config.schema import ConfigurationError


@dataclass(frozen=True)
class ProblemResponse:
    """RFC 7807-style error body: a stable ``error`` slug plus the HTTP status."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "status": self.status}
        if self.message:
            payload["message"] = self.message
        payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    return ProblemResponse(error=error, status=status, message=message, extra=extra)


def register_error_handlers(app: Flask) -> None:
    """Map request, lookup, configuration and validation failures to problems."""

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(NotFound)
    def handle_not_found(error: NotFound):
        return problem_response(
            "not_found", status=404, message=error.description
        ).to_response()

    # ConfigurationError subclasses ValueError; Flask picks the closest match.
    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(error: ConfigurationError):
        return problem_response(
            "configuration_error", status=500, message=str(error)
        ).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()


__all__ = ["ProblemResponse", "problem_response", "register_error_handlers"]
