"""Orchestrate request validation, normalisation, and tax calculations.

The calculation service coordinates the request models, the year-based
configuration and the calculator modules so that each calculator can focus on
its own arithmetic. The pipeline runs strictly forward: normalise income,
social security, allowances, bracket tax, credits and special payments, then
aggregate. Profiling hooks and boundary validation live here to give the rest
of the application a simple ``calculate`` / ``calculate_tax`` entry point.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from time import perf_counter
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from praxistax.backend.app.localization import get_translator
from praxistax.backend.app.models import (
    CalculationInput,
    CalculationRequest,
    ComprehensiveTaxResult,
    ContributionResult,
    MonthlyProgressRequest,
    MonthlyTaxProgress,
    QuarterlyPayments,
    QuarterlyPaymentsRequest,
    QuickEstimateRequest,
    SocialSecurityDetails,
    TaxOptimizationTip,
    format_validation_error,
)
from praxistax.backend.config.year_config import (
    YearConfiguration,
    load_year_configuration,
    resolve_tax_year,
)

from .calculators import (
    apply_credits,
    as_percentage,
    build_optimization_tips,
    calculate_chamber_fee,
    calculate_credits,
    calculate_employee_contributions,
    calculate_final_taxable_income,
    calculate_gewinnfreibetrag,
    calculate_home_office_allowance,
    calculate_progressive_tax,
    calculate_quarterly_payments as _split_quarterly,
    calculate_self_employed_contributions,
    calculate_special_payments_tax,
    calculate_taxable_employment,
    calculate_taxable_self_employment,
    calculate_total_deductions,
    calculate_vat,
    estimate_employee_breakdown,
    marginal_rate,
    normalise_employment,
    normalise_self_employment,
    round_currency,
)
from .calculators.income import optional_amount
from .calculators.social_security import (
    empty_employee_breakdown,
    empty_self_employed_breakdown,
)

_LOGGER = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_ZERO = Decimal("0")
_MONTHS_PER_YEAR = 12


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("PRAXISTAX_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def validate_payload(model: type[_ModelT], payload: Mapping[str, Any] | BaseModel) -> _ModelT:
    """Validate ``payload`` against ``model`` and surface errors as ``ValueError``."""

    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="python")
    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def _normalise_payload(request: CalculationRequest, config_year: int) -> CalculationInput:
    year = request.tax_year if request.tax_year is not None else date.today().year
    values: dict[str, Any] = {
        "year": year,
        "config_year": config_year,
        "locale": request.locale or "en",
    }

    if request.employment is not None:
        employment = normalise_employment(request.employment)
        values.update(
            has_employment=True,
            employment_gross=employment.gross,
            special_payments_gross=employment.special_payments_gross,
            home_office_days=employment.home_office_days,
            employee_ss_paid=employment.employee_ss_paid,
            wage_tax_withheld=employment.wage_tax_withheld,
        )

    if request.self_employment is not None:
        practice = normalise_self_employment(request.self_employment)
        values.update(
            has_self_employment=True,
            self_employment_revenue=practice.revenue,
            self_employment_expenses=practice.expenses,
            self_employment_profit=practice.profit,
            practice_type=practice.practice_type,
        )

    deductions = request.deductions
    if deductions is not None:
        for name in (
            "charitable_donations",
            "pension_contributions",
            "life_insurance_premiums",
            "church_tax",
            "home_loan_interest",
        ):
            values[f"deductions_{name}"] = optional_amount(getattr(deductions, name))

    credits = request.credits
    if credits is not None:
        values.update(
            has_commuter_credit=credits.has_commuter_credit,
            commuter_allowance=optional_amount(credits.commuter_allowance),
            sole_earner_credit=optional_amount(credits.sole_earner_credit),
            child_support_credit=optional_amount(credits.child_support_credit),
            number_of_children=credits.number_of_children,
        )

    return CalculationInput.model_validate(values)


def _employee_contributions(
    normalised: CalculationInput, config: YearConfiguration
) -> ContributionResult:
    if not normalised.has_employment:
        return ContributionResult(total=round_currency(_ZERO), breakdown=empty_employee_breakdown())
    if normalised.employee_ss_paid:
        return estimate_employee_breakdown(
            normalised.employee_ss_paid, normalised.employment_gross, config.social_security
        )
    return calculate_employee_contributions(
        normalised.employment_gross,
        normalised.special_payments_gross,
        config.social_security,
    )


def _self_employed_contributions(
    normalised: CalculationInput, config: YearConfiguration
) -> ContributionResult:
    if not normalised.has_self_employment:
        return ContributionResult(
            total=round_currency(_ZERO), breakdown=empty_self_employed_breakdown()
        )
    return calculate_self_employed_contributions(
        normalised.self_employment_profit, config.social_security
    )


def _compute(normalised: CalculationInput, config: YearConfiguration) -> ComprehensiveTaxResult:
    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None
    limits = config.deduction_limits

    with _profile_section("social_security", timings):
        employee = _employee_contributions(normalised, config)
        self_employed = _self_employed_contributions(normalised, config)

    with _profile_section("allowances", timings):
        home_office = _ZERO
        taxable_employment = _ZERO
        if normalised.has_employment:
            home_office = calculate_home_office_allowance(normalised.home_office_days, limits)
            taxable_employment = calculate_taxable_employment(
                normalised.employment_gross,
                employee.total,
                employee.special_payments_portion,
                home_office,
                limits.standard_employment_allowance,
            )

        profit = normalised.self_employment_profit
        gewinnfreibetrag = _ZERO
        if normalised.has_self_employment:
            gewinnfreibetrag = calculate_gewinnfreibetrag(profit, limits)
        taxable_self_employment = calculate_taxable_self_employment(profit, gewinnfreibetrag)

        total_deductions = calculate_total_deductions(
            home_office, normalised.deduction_amounts.values()
        )
        final_taxable = calculate_final_taxable_income(
            taxable_employment, taxable_self_employment, total_deductions
        )

    with _profile_section("income_tax", timings):
        progressive = calculate_progressive_tax(final_taxable, config.brackets)
        credits = calculate_credits(
            normalised.has_commuter_credit,
            normalised.credit_amounts,
            config.tax_credits,
            number_of_children=normalised.number_of_children,
        )
        tax_after_credits = apply_credits(progressive.total, credits)
        special_payments_tax = calculate_special_payments_tax(
            normalised.special_payments_gross,
            employee.special_payments_portion,
            config.special_payments,
        )
        total_income_tax = round_currency(tax_after_credits + special_payments_tax)

    levies = config.practice_levies
    chamber_fee = _ZERO
    vat = _ZERO
    if normalised.has_self_employment:
        chamber_fee = calculate_chamber_fee(profit, normalised.practice_type, levies)
        vat = calculate_vat(normalised.self_employment_revenue, normalised.practice_type, levies)

    total_gross = round_currency(
        normalised.employment_gross + normalised.special_payments_gross + profit
    )
    total_ss = round_currency(employee.total + self_employed.total)
    total_burden = round_currency(total_ss + total_income_tax + chamber_fee + vat)

    result = ComprehensiveTaxResult(
        total_gross_income=total_gross,
        employment_gross=normalised.employment_gross,
        special_payments_gross=normalised.special_payments_gross,
        self_employment_profit=profit,
        employee_ss=employee.total,
        self_employed_ss=self_employed.total,
        total_ss=total_ss,
        ss_breakdown=SocialSecurityDetails(
            employee=employee.breakdown, self_employed=self_employed.breakdown
        ),
        taxable_employment=taxable_employment,
        taxable_self_employment=taxable_self_employment,
        total_taxable_income=final_taxable,
        gewinnfreibetrag=round_currency(gewinnfreibetrag),
        home_office_allowance=round_currency(home_office),
        applied_deductions=total_deductions,
        applied_credits=credits,
        final_taxable_income=final_taxable,
        income_tax_before_credits=progressive.total,
        tax_credits_applied=credits,
        special_payments_tax=special_payments_tax,
        total_income_tax=total_income_tax,
        tax_breakdown_by_bracket=progressive.breakdown,
        vat=round_currency(vat),
        aerztekammer_beitrag=round_currency(chamber_fee),
        wage_tax_withheld=normalised.wage_tax_withheld,
        tax_liability=round_currency(total_income_tax - normalised.wage_tax_withheld),
        total_direct_burden=total_burden,
        burden_percentage=as_percentage(total_burden, total_gross),
        net_income=round_currency(total_gross - total_burden),
        effective_tax_rate=as_percentage(total_income_tax, total_gross),
        marginal_tax_rate=marginal_rate(final_taxable, config.brackets),
        tax_year=normalised.year,
        config_year=normalised.config_year,
        calculated_at=datetime.now(timezone.utc),
    )

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    return result


def calculate(payload: Mapping[str, Any] | CalculationRequest) -> ComprehensiveTaxResult:
    """Compute the full tax result for ``payload``."""

    request_model = validate_payload(CalculationRequest, payload)

    config_year = resolve_tax_year(request_model.tax_year)
    config = load_year_configuration(config_year)
    normalised = _normalise_payload(request_model, config_year)

    result = _compute(normalised, config)
    _LOGGER.debug(
        "Calculated tax year %s (table %s): gross=%s burden=%s net=%s",
        result.tax_year,
        result.config_year,
        result.total_gross_income,
        result.total_direct_burden,
        result.net_income,
    )
    return result


def calculate_tax(payload: Mapping[str, Any] | CalculationRequest) -> dict[str, Any]:
    """Compute the tax result for ``payload`` as a JSON-ready mapping."""

    return calculate(payload).model_dump(mode="json")


def quick_estimate(
    employment_gross: Decimal | float | int = 0,
    self_employment_profit: Decimal | float | int = 0,
    tax_year: int | None = None,
) -> ComprehensiveTaxResult:
    """Estimate the burden from a salary and a practice profit alone.

    The profit is fed in as revenue without expenses; records with a zero
    amount are left out entirely.
    """

    estimate = validate_payload(
        QuickEstimateRequest,
        {
            "employment_gross": employment_gross,
            "self_employment_profit": self_employment_profit,
            "tax_year": tax_year,
        },
    )
    return calculate(estimate_request(estimate))


def estimate_request(estimate: QuickEstimateRequest) -> CalculationRequest:
    """Expand a quick estimate into a full calculation request."""

    employment = None
    if estimate.employment_gross > 0:
        employment = {"gross_salary": estimate.employment_gross}
    self_employment = None
    if estimate.self_employment_profit > 0:
        self_employment = {
            "total_revenue": estimate.self_employment_profit,
            "business_expenses": _ZERO,
        }
    return CalculationRequest.model_validate(
        {
            "tax_year": estimate.tax_year,
            "locale": estimate.locale,
            "employment": employment,
            "self_employment": self_employment,
        }
    )


def calculate_quarterly_payments(
    annual_income_tax: Decimal | float | int,
) -> QuarterlyPayments:
    """Split the annual income tax into four advance payments."""

    request_model = validate_payload(
        QuarterlyPaymentsRequest, {"annual_income_tax": annual_income_tax}
    )
    return _split_quarterly(request_model.annual_income_tax)


def generate_optimization_tips(
    result: ComprehensiveTaxResult, locale: str | None = None
) -> list[TaxOptimizationTip]:
    """Return localized advice for ``result`` using its year's deduction limits."""

    config = load_year_configuration(result.config_year)
    translator = get_translator(locale)
    return build_optimization_tips(result, config.deduction_limits, translator)


def calculate_monthly_progress(
    ytd_revenue: Decimal | float | int,
    ytd_expenses: Decimal | float | int,
    ytd_employment_income: Decimal | float | int = 0,
    month: int = 6,
    tax_year: int | None = None,
) -> MonthlyTaxProgress:
    """Project the year-end burden from year-to-date practice figures."""

    progress = validate_payload(
        MonthlyProgressRequest,
        {
            "ytd_revenue": ytd_revenue,
            "ytd_expenses": ytd_expenses,
            "ytd_employment_income": ytd_employment_income,
            "month": month,
            "tax_year": tax_year,
        },
    )
    return progress_snapshot(progress)


def progress_snapshot(progress: MonthlyProgressRequest) -> MonthlyTaxProgress:
    """Run the year-to-date calculation behind :func:`calculate_monthly_progress`."""

    employment = None
    if progress.ytd_employment_income > 0:
        employment = {"gross_salary": progress.ytd_employment_income}
    result = calculate(
        {
            "tax_year": progress.tax_year,
            "employment": employment,
            "self_employment": {
                "total_revenue": progress.ytd_revenue,
                "business_expenses": progress.ytd_expenses,
            },
        }
    )

    projected = round_currency(
        result.total_direct_burden / progress.month * _MONTHS_PER_YEAR
    )
    return MonthlyTaxProgress(
        month=progress.month,
        year=result.tax_year,
        ytd_revenue=round_currency(progress.ytd_revenue),
        ytd_expenses=round_currency(progress.ytd_expenses),
        ytd_profit=round_currency(progress.ytd_revenue - progress.ytd_expenses),
        ytd_tax_burden=result.total_direct_burden,
        projected_annual_burden=projected,
        burden_percentage=result.burden_percentage,
    )


def summarise_result(result: ComprehensiveTaxResult) -> dict[str, Any]:
    """Group the headline figures of ``result`` into a compact JSON mapping."""

    return {
        "income": {
            "total_gross": float(result.total_gross_income),
            "employment": float(result.employment_gross),
            "special_payments": float(result.special_payments_gross),
            "self_employment": float(result.self_employment_profit),
        },
        "social_security": {
            "employee": float(result.employee_ss),
            "self_employed": float(result.self_employed_ss),
            "total": float(result.total_ss),
        },
        "tax": {
            "income_tax_before_credits": float(result.income_tax_before_credits),
            "credits_applied": float(result.tax_credits_applied),
            "special_payments": float(result.special_payments_tax),
            "total": float(result.total_income_tax),
        },
        "burden": {
            "total": float(result.total_direct_burden),
            "percentage": float(result.burden_percentage),
            "effective_tax_rate": float(result.effective_tax_rate),
            "marginal_tax_rate": float(result.marginal_tax_rate),
        },
        "net_income": float(result.net_income),
        "tax_year": result.tax_year,
    }


__all__ = [
    "calculate",
    "calculate_monthly_progress",
    "calculate_quarterly_payments",
    "calculate_tax",
    "estimate_request",
    "generate_optimization_tips",
    "progress_snapshot",
    "quick_estimate",
    "summarise_result",
    "validate_payload",
]
