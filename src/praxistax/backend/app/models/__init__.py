"""Typed request/response models shared across the calculation services.

Boundary payloads are validated by the Pydantic models in :mod:`.api`; the
calculation pipeline itself only ever sees the flattened, rounded
``CalculationInput`` below together with lightweight dataclasses for the
intermediate figures each calculator hands to the next.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from praxistax.backend.config.schema import Amount, OptionalAmount

from .api import (
    PRACTICE_TYPES,
    BracketBreakdownEntry,
    CalculationRequest,
    ComprehensiveTaxResult,
    CreditsInput,
    DeductionsInput,
    EmploymentInput,
    MonthlyProgressRequest,
    MonthlyTaxProgress,
    QuarterlyPayments,
    QuarterlyPaymentsRequest,
    QuickEstimateRequest,
    SelfEmploymentInput,
    SocialSecurityBreakdown,
    SocialSecurityDetails,
    TaxOptimizationTip,
    format_validation_error,
)

__all__ = [
    "CalculationInput",
    "ContributionResult",
    "ProgressiveTaxResult",
    "PRACTICE_TYPES",
    "BracketBreakdownEntry",
    "CalculationRequest",
    "ComprehensiveTaxResult",
    "CreditsInput",
    "DeductionsInput",
    "EmploymentInput",
    "MonthlyProgressRequest",
    "MonthlyTaxProgress",
    "QuarterlyPayments",
    "QuarterlyPaymentsRequest",
    "QuickEstimateRequest",
    "SelfEmploymentInput",
    "SocialSecurityBreakdown",
    "SocialSecurityDetails",
    "TaxOptimizationTip",
    "format_validation_error",
]

_ZERO = Decimal("0")


class CalculationInput(BaseModel):
    """Validated and normalised user input for tax calculations."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    year: int
    config_year: int
    locale: str

    has_employment: bool = False
    employment_gross: Amount = _ZERO
    special_payments_gross: Amount = _ZERO
    home_office_days: int = 0
    employee_ss_paid: OptionalAmount = None
    wage_tax_withheld: Amount = _ZERO

    has_self_employment: bool = False
    self_employment_revenue: Amount = _ZERO
    self_employment_expenses: Amount = _ZERO
    self_employment_profit: Amount = _ZERO
    practice_type: str | None = None

    deductions_charitable_donations: Amount = _ZERO
    deductions_pension_contributions: Amount = _ZERO
    deductions_life_insurance_premiums: Amount = _ZERO
    deductions_church_tax: Amount = _ZERO
    deductions_home_loan_interest: Amount = _ZERO

    has_commuter_credit: bool = False
    commuter_allowance: Amount = _ZERO
    sole_earner_credit: Amount = _ZERO
    child_support_credit: Amount = _ZERO
    number_of_children: int = 0

    @property
    def deduction_amounts(self) -> Mapping[str, Decimal]:
        return {
            "charitable_donations": self.deductions_charitable_donations,
            "pension_contributions": self.deductions_pension_contributions,
            "life_insurance_premiums": self.deductions_life_insurance_premiums,
            "church_tax": self.deductions_church_tax,
            "home_loan_interest": self.deductions_home_loan_interest,
        }

    @property
    def credit_amounts(self) -> Mapping[str, Decimal]:
        return {
            "commuter_allowance": self.commuter_allowance,
            "sole_earner_credit": self.sole_earner_credit,
            "child_support_credit": self.child_support_credit,
        }


@dataclass(frozen=True, slots=True)
class ContributionResult:
    """Social-security total with its branch breakdown."""

    total: Decimal
    breakdown: SocialSecurityBreakdown

    @property
    def special_payments_portion(self) -> Decimal:
        return self.breakdown.special_payments or _ZERO


@dataclass(frozen=True, slots=True)
class ProgressiveTaxResult:
    """Bracket tax with the per-bracket shares that make it up."""

    total: Decimal
    breakdown: tuple[BracketBreakdownEntry, ...] = ()
