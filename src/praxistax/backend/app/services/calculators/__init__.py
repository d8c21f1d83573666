"""Domain-specific calculation helpers."""

from .allowances import (
    calculate_final_taxable_income,
    calculate_gewinnfreibetrag,
    calculate_home_office_allowance,
    calculate_taxable_employment,
    calculate_taxable_self_employment,
    calculate_total_deductions,
)
from .credits import apply_credits, calculate_credits, calculate_special_payments_tax
from .income import calculate_profit, normalise_employment, normalise_self_employment
from .insights import build_optimization_tips, calculate_quarterly_payments
from .levies import calculate_chamber_fee, calculate_vat
from .progressive import calculate_progressive_tax, marginal_rate
from .social_security import (
    calculate_employee_contributions,
    calculate_self_employed_contributions,
    estimate_employee_breakdown,
)
from .utils import as_percentage, ensure_non_negative, round_currency

__all__ = [
    "apply_credits",
    "as_percentage",
    "build_optimization_tips",
    "calculate_chamber_fee",
    "calculate_credits",
    "calculate_employee_contributions",
    "calculate_final_taxable_income",
    "calculate_gewinnfreibetrag",
    "calculate_home_office_allowance",
    "calculate_profit",
    "calculate_progressive_tax",
    "calculate_quarterly_payments",
    "calculate_self_employed_contributions",
    "calculate_special_payments_tax",
    "calculate_taxable_employment",
    "calculate_taxable_self_employment",
    "calculate_total_deductions",
    "calculate_vat",
    "ensure_non_negative",
    "estimate_employee_breakdown",
    "marginal_rate",
    "normalise_employment",
    "normalise_self_employment",
    "round_currency",
]
