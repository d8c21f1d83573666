"""Income normalisation for the employment and self-employment streams."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from praxistax.backend.app.models import EmploymentInput, SelfEmploymentInput

from .utils import ZERO, ensure_non_negative, round_currency


@dataclass(frozen=True, slots=True)
class NormalisedEmployment:
    gross: Decimal
    special_payments_gross: Decimal
    home_office_days: int
    employee_ss_paid: Decimal | None
    wage_tax_withheld: Decimal


@dataclass(frozen=True, slots=True)
class NormalisedSelfEmployment:
    revenue: Decimal
    expenses: Decimal
    profit: Decimal
    practice_type: str | None


def normalise_employment(employment: EmploymentInput) -> NormalisedEmployment:
    """Round the payslip figures to cents."""

    ss_paid = employment.employee_ss_paid
    return NormalisedEmployment(
        gross=round_currency(employment.gross_salary),
        special_payments_gross=round_currency(employment.special_payments_gross),
        home_office_days=employment.home_office_days,
        employee_ss_paid=round_currency(ss_paid) if ss_paid else None,
        wage_tax_withheld=round_currency(employment.wage_tax_withheld),
    )


def calculate_profit(revenue: Decimal, expenses: Decimal) -> Decimal:
    """Return the practice profit; a loss counts as zero."""

    return ensure_non_negative(round_currency(revenue) - round_currency(expenses))


def declared_expenses(self_employment: SelfEmploymentInput) -> Decimal:
    """Return ``business_expenses``, or the itemised total when it was omitted."""

    breakdown = self_employment.expense_breakdown
    if "business_expenses" in self_employment.model_fields_set or not breakdown:
        return self_employment.business_expenses
    return sum(breakdown.values(), ZERO)


def normalise_self_employment(
    self_employment: SelfEmploymentInput,
) -> NormalisedSelfEmployment:
    revenue = round_currency(self_employment.total_revenue)
    expenses = round_currency(declared_expenses(self_employment))
    return NormalisedSelfEmployment(
        revenue=revenue,
        expenses=expenses,
        profit=calculate_profit(revenue, expenses),
        practice_type=self_employment.practice_type,
    )


def optional_amount(value: Decimal | None) -> Decimal:
    """Round an optional user amount, treating ``None`` as zero."""

    if value is None:
        return round_currency(ZERO)
    return round_currency(value)


__all__ = [
    "NormalisedEmployment",
    "NormalisedSelfEmployment",
    "calculate_profit",
    "declared_expenses",
    "normalise_employment",
    "normalise_self_employment",
    "optional_amount",
]
