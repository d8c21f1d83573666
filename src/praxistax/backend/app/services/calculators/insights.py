"""Views derived from a finished calculation: advance payments and tips.

Tips are an ordered list of independent rules. Each rule pairs a predicate
over the result with a builder for the localized message, so adding or
retiring advice never touches the other rules.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from praxistax.backend.app.localization import Translator
from praxistax.backend.app.models import (
    ComprehensiveTaxResult,
    QuarterlyPayments,
    TaxOptimizationTip,
)
from praxistax.backend.config.year_config import DeductionLimits

from .utils import HUNDRED, format_euro, format_percentage, round_currency

HIGH_EFFECTIVE_RATE = Decimal("45")
HIGH_MARGINAL_RATE = Decimal("48")
STRONG_NET_INCOME = Decimal("60000")
LOW_PROFIT = Decimal("10000")
PENSION_HINT_GROSS = Decimal("50000")


def calculate_quarterly_payments(annual_income_tax: Decimal) -> QuarterlyPayments:
    """Split ``annual_income_tax`` into four equal advance payments."""

    if annual_income_tax < 0:
        raise ValueError("Annual income tax cannot be negative")

    quarter = round_currency(annual_income_tax / 4)
    return QuarterlyPayments(
        q1=quarter,
        q2=quarter,
        q3=quarter,
        q4=quarter,
        total=round_currency(quarter * 4),
    )


@dataclass(frozen=True)
class TipContext:
    result: ComprehensiveTaxResult
    limits: DeductionLimits
    translator: Translator

    def euro(self, amount: Decimal) -> str:
        return format_euro(amount, locale=self.translator.locale)


@dataclass(frozen=True)
class TipRule:
    """A single piece of advice and the condition under which it is shown."""

    key: str
    type: str
    category: str
    applies: Callable[[TipContext], bool]
    describe: Callable[[TipContext], dict[str, str]]
    savings: Callable[[TipContext], Decimal | None] = lambda context: None

    def build(self, context: TipContext) -> TaxOptimizationTip:
        translate = context.translator
        return TaxOptimizationTip(
            type=self.type,
            category=self.category,
            title=translate(f"tips.{self.key}.title"),
            description=translate(
                f"tips.{self.key}.description", **self.describe(context)
            ),
            potential_savings=self.savings(context),
        )


def _profit_allowance_savings(context: TipContext) -> Decimal:
    result = context.result
    return round_currency(result.gewinnfreibetrag * result.marginal_tax_rate / HUNDRED)


def _pension_savings(context: TipContext) -> Decimal:
    return round_currency(
        context.limits.pension_contribution_max
        * context.result.marginal_tax_rate
        / HUNDRED
    )


TIP_RULES: Sequence[TipRule] = (
    TipRule(
        key="high_burden",
        type="warning",
        category="high_tax_burden",
        applies=lambda c: c.result.effective_tax_rate > HIGH_EFFECTIVE_RATE,
        describe=lambda c: {"rate": f"{c.result.effective_tax_rate:.1f}"},
        savings=lambda c: round_currency(
            c.result.total_direct_burden * c.result.effective_tax_rate / HUNDRED
        ),
    ),
    TipRule(
        key="profit_allowance",
        type="success",
        category="tax_benefits",
        # Inside the tax-free bracket the allowance saves nothing worth reporting.
        applies=lambda c: (
            0 < c.result.self_employment_profit < c.limits.gewinnfreibetrag_limit
            and _profit_allowance_savings(c) > 0
        ),
        describe=lambda c: {
            "rate": format_percentage(c.limits.gewinnfreibetrag_rate),
            "savings": c.euro(_profit_allowance_savings(c)),
        },
    ),
    TipRule(
        key="strong_income",
        type="success",
        category="performance",
        applies=lambda c: c.result.net_income > STRONG_NET_INCOME,
        describe=lambda c: {"threshold": c.euro(STRONG_NET_INCOME)},
    ),
    TipRule(
        key="low_profit",
        type="warning",
        category="business_health",
        applies=lambda c: 0 < c.result.self_employment_profit < LOW_PROFIT,
        describe=lambda c: {"threshold": c.euro(LOW_PROFIT)},
    ),
    TipRule(
        key="high_marginal",
        type="info",
        category="tax_planning",
        applies=lambda c: c.result.marginal_tax_rate >= HIGH_MARGINAL_RATE,
        describe=lambda c: {"rate": f"{c.result.marginal_tax_rate:.0f}"},
    ),
    TipRule(
        key="pension",
        type="tip",
        category="deductions",
        applies=lambda c: c.result.total_gross_income > PENSION_HINT_GROSS,
        describe=lambda c: {
            "limit": c.euro(c.limits.pension_contribution_max),
            "savings": c.euro(_pension_savings(c)),
        },
        savings=_pension_savings,
    ),
)


def build_optimization_tips(
    result: ComprehensiveTaxResult,
    limits: DeductionLimits,
    translator: Translator,
    rules: Sequence[TipRule] = TIP_RULES,
) -> list[TaxOptimizationTip]:
    """Evaluate ``rules`` in order and return the advice that applies."""

    context = TipContext(result=result, limits=limits, translator=translator)
    return [rule.build(context) for rule in rules if rule.applies(context)]


__all__ = [
    "TIP_RULES",
    "TipContext",
    "TipRule",
    "build_optimization_tips",
    "calculate_quarterly_payments",
]
