"""Service-layer helpers shared by the HTTP blueprints."""

from praxistax.backend.app.services.calculation_service import calculate_tax

from .request_parser import parse_calculation_payload, parse_query_year
from .response_builder import (
    build_calculation_response,
    build_model_response,
    build_tips_response,
)

__all__ = [
    "build_calculation_response",
    "build_model_response",
    "build_tips_response",
    "calculate_tax",
    "parse_calculation_payload",
    "parse_query_year",
]
