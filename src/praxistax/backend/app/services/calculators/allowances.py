"""Allowances (Freibeträge) and special expenses reducing the taxable base."""

from __future__ import annotations

import math
from collections.abc import Iterable
from decimal import Decimal

from praxistax.backend.config.year_config import DeductionLimits

from .utils import ZERO, ensure_non_negative, round_currency

_WORKDAYS_PER_MONTH = 20
_MONTHS_PER_YEAR = 12


def calculate_gewinnfreibetrag(profit: Decimal, limits: DeductionLimits) -> Decimal:
    """Return the basic profit allowance for ``profit``.

    With the ``profit`` basis the limit caps the profit the rate applies to;
    with the ``allowance`` basis it caps the resulting allowance instead.
    """

    if profit <= 0:
        return round_currency(ZERO)

    rate = limits.gewinnfreibetrag_rate
    limit = limits.gewinnfreibetrag_limit
    if limits.gewinnfreibetrag_limit_basis == "allowance":
        return round_currency(min(profit * rate, limit))
    return round_currency(min(profit, limit) * rate)


def calculate_home_office_allowance(days: int | None, limits: DeductionLimits) -> Decimal:
    """Return the home-office allowance for ``days`` worked from home.

    Each started block of twenty days unlocks one month of the monthly cap,
    up to twelve months.
    """

    if not days or days <= 0:
        return round_currency(ZERO)

    allowance = limits.homeoffice_daily * days
    months = min(_MONTHS_PER_YEAR, math.ceil(days / _WORKDAYS_PER_MONTH))
    cap = limits.homeoffice_monthly_max * months
    return round_currency(min(allowance, cap))


def calculate_total_deductions(
    home_office_allowance: Decimal, user_deductions: Iterable[Decimal | None]
) -> Decimal:
    """Sum the home-office allowance and every declared special expense."""

    total = home_office_allowance
    for amount in user_deductions:
        if amount:
            total += amount
    return round_currency(total)


def calculate_taxable_employment(
    gross: Decimal,
    employee_ss: Decimal,
    special_ss: Decimal,
    home_office_allowance: Decimal,
    standard_allowance: Decimal,
) -> Decimal:
    """Return taxable employment income.

    Only the contributions on regular salary are deducted here; special
    payments are taxed separately together with their own contributions.
    """

    regular_ss = round_currency(employee_ss - special_ss)
    return ensure_non_negative(
        gross - regular_ss - home_office_allowance - standard_allowance
    )


def calculate_taxable_self_employment(profit: Decimal, gewinnfreibetrag: Decimal) -> Decimal:
    return ensure_non_negative(profit - gewinnfreibetrag)


def calculate_final_taxable_income(
    taxable_employment: Decimal,
    taxable_self_employment: Decimal,
    total_deductions: Decimal,
) -> Decimal:
    return ensure_non_negative(
        taxable_employment + taxable_self_employment - total_deductions
    )


__all__ = [
    "calculate_final_taxable_income",
    "calculate_gewinnfreibetrag",
    "calculate_home_office_allowance",
    "calculate_taxable_employment",
    "calculate_taxable_self_employment",
    "calculate_total_deductions",
]
