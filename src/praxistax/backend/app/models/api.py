"""Pydantic models describing the public API surface."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from praxistax.backend.config.schema import Amount, OptionalAmount
from praxistax.backend.config.year_config import MAX_TAX_YEAR, MIN_TAX_YEAR

__all__ = [
    "PRACTICE_TYPES",
    "EmploymentInput",
    "SelfEmploymentInput",
    "DeductionsInput",
    "CreditsInput",
    "CalculationRequest",
    "QuickEstimateRequest",
    "QuarterlyPaymentsRequest",
    "MonthlyProgressRequest",
    "SocialSecurityBreakdown",
    "SocialSecurityDetails",
    "BracketBreakdownEntry",
    "ComprehensiveTaxResult",
    "QuarterlyPayments",
    "TaxOptimizationTip",
    "MonthlyTaxProgress",
    "format_validation_error",
]

PracticeType = Literal["kassenarzt", "wahlarzt", "mixed"]
PRACTICE_TYPES: tuple[str, ...] = ("kassenarzt", "wahlarzt", "mixed")

_ZERO = Decimal("0")


def _reject_negative(value: Decimal | None) -> Decimal | None:
    if value is not None and value < 0:
        raise ValueError("value cannot be negative")
    return value


class EmploymentInput(BaseModel):
    """Salary figures taken from the annual payslip (Lohnzettel)."""

    model_config = ConfigDict(extra="forbid")

    gross_salary: Amount = Field(default=_ZERO, ge=0)
    special_payments_gross: Amount = Field(default=_ZERO, ge=0)
    home_office_days: int = Field(default=0, ge=0, le=366)
    employee_ss_paid: OptionalAmount = None
    wage_tax_withheld: Amount = Field(default=_ZERO, ge=0)

    @field_validator("employee_ss_paid")
    @classmethod
    def _validate_ss_paid(cls, value: Decimal | None) -> Decimal | None:
        return _reject_negative(value)

    @field_validator("home_office_days", mode="before")
    @classmethod
    def _coerce_days(cls, value: Any) -> Any:
        if value is None:
            return 0
        return value


class SelfEmploymentInput(BaseModel):
    """Practice revenue and expenses for the year."""

    model_config = ConfigDict(extra="forbid")

    total_revenue: Amount = Field(default=_ZERO, ge=0)
    business_expenses: Amount = Field(default=_ZERO, ge=0)
    expense_breakdown: dict[str, Amount] = Field(default_factory=dict)
    practice_type: PracticeType | None = None

    @field_validator("practice_type", mode="before")
    @classmethod
    def _normalise_practice_type(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            normalised = value.strip().lower()
            if not normalised:
                return None
            if normalised in PRACTICE_TYPES:
                return normalised
        raise ValueError(
            f"Invalid practice type selection; expected one of {', '.join(PRACTICE_TYPES)}"
        )

    @field_validator("expense_breakdown", mode="before")
    @classmethod
    def _normalise_breakdown(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise TypeError("Expense breakdown must map categories to amounts")
        return value

    @field_validator("expense_breakdown", mode="after")
    @classmethod
    def _validate_breakdown(cls, value: dict[str, Decimal]) -> dict[str, Decimal]:
        for category, amount in value.items():
            if amount < 0:
                raise ValueError(f"Expense amount for '{category}' cannot be negative")
        return value


class DeductionsInput(BaseModel):
    """Special expenses (Sonderausgaben) declared by the taxpayer."""

    model_config = ConfigDict(extra="forbid")

    charitable_donations: OptionalAmount = None
    pension_contributions: OptionalAmount = None
    life_insurance_premiums: OptionalAmount = None
    church_tax: OptionalAmount = None
    home_loan_interest: OptionalAmount = None

    @field_validator(
        "charitable_donations",
        "pension_contributions",
        "life_insurance_premiums",
        "church_tax",
        "home_loan_interest",
    )
    @classmethod
    def _validate_amounts(cls, value: Decimal | None) -> Decimal | None:
        return _reject_negative(value)


class CreditsInput(BaseModel):
    """Tax credits (Absetzbeträge) claimed by the taxpayer."""

    model_config = ConfigDict(extra="forbid")

    has_commuter_credit: bool = False
    commuter_allowance: OptionalAmount = None
    sole_earner_credit: OptionalAmount = None
    child_support_credit: OptionalAmount = None
    number_of_children: int = Field(default=0, ge=0, le=20)

    @field_validator("has_commuter_credit", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if value is None:
            return False
        return bool(value)

    @field_validator("commuter_allowance", "sole_earner_credit", "child_support_credit")
    @classmethod
    def _validate_amounts(cls, value: Decimal | None) -> Decimal | None:
        return _reject_negative(value)


def _normalise_locale_value(value: Any) -> str:
    if value is None:
        return "en"
    text = str(value).strip()
    return text or "en"


class CalculationRequest(BaseModel):
    """Complete payload accepted by the calculation engine."""

    model_config = ConfigDict(extra="forbid")

    tax_year: int | None = Field(default=None, ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)
    locale: str = Field(default="en")
    employment: EmploymentInput | None = None
    self_employment: SelfEmploymentInput | None = None
    deductions: DeductionsInput | None = None
    credits: CreditsInput | None = None

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        return _normalise_locale_value(value)


class QuickEstimateRequest(BaseModel):
    """Minimal payload for a rough estimate from two headline figures."""

    model_config = ConfigDict(extra="forbid")

    employment_gross: Amount = Field(default=_ZERO, ge=0)
    self_employment_profit: Amount = Field(default=_ZERO, ge=0)
    tax_year: int | None = Field(default=None, ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)
    locale: str = Field(default="en")

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        return _normalise_locale_value(value)


class QuarterlyPaymentsRequest(BaseModel):
    """Annual income tax to split into advance payments."""

    model_config = ConfigDict(extra="forbid")

    annual_income_tax: Amount = Field(..., ge=0)


class MonthlyProgressRequest(BaseModel):
    """Year-to-date figures used for the burden projection."""

    model_config = ConfigDict(extra="forbid")

    ytd_revenue: Amount = Field(default=_ZERO, ge=0)
    ytd_expenses: Amount = Field(default=_ZERO, ge=0)
    ytd_employment_income: Amount = Field(default=_ZERO, ge=0)
    month: int = Field(default=6, ge=1, le=12)
    tax_year: int | None = Field(default=None, ge=MIN_TAX_YEAR, le=MAX_TAX_YEAR)


class _ResultModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class SocialSecurityBreakdown(_ResultModel):
    """Contribution split by insurance branch."""

    pension: Amount = _ZERO
    health: Amount = _ZERO
    unemployment: OptionalAmount = None
    accident: Amount = _ZERO
    special_payments: OptionalAmount = None
    assessment_base: OptionalAmount = None


class SocialSecurityDetails(_ResultModel):
    employee: SocialSecurityBreakdown
    self_employed: SocialSecurityBreakdown


class BracketBreakdownEntry(_ResultModel):
    """Income taxed within a single bracket."""

    label: str
    lower: Amount
    upper: Amount
    rate: Amount
    taxable_amount: Amount
    tax: Amount


class ComprehensiveTaxResult(_ResultModel):
    """Fully derived outcome of a single tax calculation."""

    total_gross_income: Amount
    employment_gross: Amount
    special_payments_gross: Amount
    self_employment_profit: Amount

    employee_ss: Amount
    self_employed_ss: Amount
    total_ss: Amount
    ss_breakdown: SocialSecurityDetails

    taxable_employment: Amount
    taxable_self_employment: Amount
    total_taxable_income: Amount
    gewinnfreibetrag: Amount
    home_office_allowance: Amount
    applied_deductions: Amount
    applied_credits: Amount
    final_taxable_income: Amount

    income_tax_before_credits: Amount
    tax_credits_applied: Amount
    special_payments_tax: Amount
    total_income_tax: Amount
    tax_breakdown_by_bracket: tuple[BracketBreakdownEntry, ...]

    vat: Amount
    aerztekammer_beitrag: Amount

    wage_tax_withheld: Amount
    tax_liability: Amount
    total_direct_burden: Amount
    burden_percentage: Amount
    net_income: Amount

    effective_tax_rate: Amount
    marginal_tax_rate: Amount

    tax_year: int
    config_year: int
    calculated_at: datetime

    @property
    def is_refund(self) -> bool:
        return self.tax_liability < 0


class QuarterlyPayments(_ResultModel):
    """Advance income tax payments (Vorauszahlungen)."""

    q1: Amount
    q2: Amount
    q3: Amount
    q4: Amount
    total: Amount


class TaxOptimizationTip(_ResultModel):
    """Advisory message derived from a calculation result."""

    type: Literal["warning", "success", "info", "tip"]
    category: str
    title: str
    description: str
    potential_savings: OptionalAmount = None


class MonthlyTaxProgress(_ResultModel):
    """Year-to-date burden with a straight-line annual projection."""

    month: int
    year: int
    ytd_revenue: Amount
    ytd_expenses: Amount
    ytd_profit: Amount
    ytd_tax_burden: Amount
    projected_annual_burden: Amount
    burden_percentage: Amount


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid calculation payload: {details}"
