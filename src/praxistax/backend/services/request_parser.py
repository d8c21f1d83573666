"""Turn Flask requests into plain payload mappings for the engine."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest

from praxistax.backend.app.localization import normalise_locale


def _locale_hints(req: Request, payload: Mapping[str, Any]) -> Iterator[str]:
    """Yield locale candidates: body field, ``?locale=``, then Accept-Language."""

    body_locale = payload.get("locale")
    if isinstance(body_locale, str):
        yield body_locale

    yield req.args.get("locale", "")

    # "de-AT,de;q=0.9,en;q=0.8" -> "de-AT"
    accept_language = req.headers.get("Accept-Language", "")
    yield accept_language.split(",")[0].split(";")[0]


def _resolve_locale(req: Request, payload: dict[str, Any]) -> None:
    for hint in _locale_hints(req, payload):
        if hint.strip():
            payload["locale"] = normalise_locale(hint)
            return


def parse_calculation_payload(req: Request, *, with_locale: bool = True) -> dict[str, Any]:
    """Return the JSON object in ``req`` as a mutable dict.

    ``with_locale`` adds a normalised ``locale`` key when any hint is present.
    Endpoints whose request model has no locale field pass ``False``.
    """

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")

    payload = dict(data)
    if with_locale:
        _resolve_locale(req, payload)
    return payload


def parse_query_year(req: Request, name: str) -> int:
    """Return the integer query parameter ``name`` or raise ``BadRequest``."""

    raw = req.args.get(name, "").strip()
    if not raw:
        raise BadRequest(f"Query parameter '{name}' is required")
    try:
        return int(raw)
    except ValueError as exc:
        raise BadRequest(f"Query parameter '{name}' must be an integer") from exc


__all__ = ["parse_calculation_payload", "parse_query_year"]
