"""Serialise engine results into Flask JSON responses."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Tuple

from flask import jsonify
from pydantic import BaseModel

from praxistax.backend.app.models import TaxOptimizationTip

ResponseTuple = Tuple[Any, int]


def build_calculation_response(payload: Mapping[str, Any] | BaseModel) -> ResponseTuple:
    """Return a 200 JSON response for a result mapping or model.

    Models are dumped in JSON mode so decimals become numbers rather than
    strings.
    """

    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    return jsonify(payload), 200


def build_model_response(model: BaseModel) -> ResponseTuple:
    return build_calculation_response(model)


def build_tips_response(locale: str, tips: Iterable[TaxOptimizationTip]) -> ResponseTuple:
    """Wrap localized tips together with the locale they were rendered in."""

    return build_calculation_response(
        {"locale": locale, "tips": [tip.model_dump(mode="json") for tip in tips]}
    )


__all__ = [
    "ResponseTuple",
    "build_calculation_response",
    "build_model_response",
    "build_tips_response",
]
