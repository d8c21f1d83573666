"""REST endpoints for tax calculations and the views derived from them."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from praxistax.backend.app.models import (
    MonthlyProgressRequest,
    QuickEstimateRequest,
)
from praxistax.backend.app.services.calculation_service import (
    calculate,
    calculate_quarterly_payments,
    estimate_request,
    generate_optimization_tips,
    progress_snapshot,
    validate_payload,
)
from praxistax.backend.services import (
    build_calculation_response,
    build_model_response,
    build_tips_response,
    calculate_tax,
    parse_calculation_payload,
)

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Create a tax calculation using the submitted JSON payload."""

    payload = parse_calculation_payload(request)
    result = calculate_tax(payload)

    return build_calculation_response(result)


@blueprint.post("/calculations/quick-estimate")
def create_quick_estimate() -> tuple[Any, int]:
    """Estimate the burden from a salary and a practice profit only."""

    payload = parse_calculation_payload(request)
    estimate = validate_payload(QuickEstimateRequest, payload)

    return build_model_response(calculate(estimate_request(estimate)))


@blueprint.post("/calculations/quarterly-payments")
def create_quarterly_payments() -> tuple[Any, int]:
    payload = parse_calculation_payload(request, with_locale=False)
    if "annual_income_tax" not in payload:
        raise ValueError("Field 'annual_income_tax' is required")

    return build_model_response(
        calculate_quarterly_payments(payload["annual_income_tax"])
    )


@blueprint.post("/calculations/tips")
def create_optimization_tips() -> tuple[Any, int]:
    """Run the calculation and return the advice that applies to it."""

    payload = parse_calculation_payload(request)
    result = calculate(payload)
    tips = generate_optimization_tips(result, payload.get("locale"))

    return build_tips_response(payload.get("locale", "en"), tips)


@blueprint.post("/calculations/monthly-progress")
def create_monthly_progress() -> tuple[Any, int]:
    """Project the annual burden from year-to-date figures."""

    payload = parse_calculation_payload(request, with_locale=False)
    progress = validate_payload(MonthlyProgressRequest, payload)

    return build_model_response(progress_snapshot(progress))
