"""Social-security contributions for employees (ÖGK/ASVG) and the self-employed (SVS)."""

from __future__ import annotations

from decimal import Decimal

from praxistax.backend.app.models import ContributionResult, SocialSecurityBreakdown
from praxistax.backend.config.year_config import SocialSecurityConfig

from .utils import ZERO, round_currency


def _employee_branches(
    base: Decimal, config: SocialSecurityConfig, special: Decimal | None
) -> SocialSecurityBreakdown:
    rates = config.component_rates
    return SocialSecurityBreakdown(
        pension=round_currency(base * rates.pension),
        health=round_currency(base * rates.health),
        unemployment=round_currency(base * rates.unemployment),
        accident=round_currency(base * rates.accident),
        special_payments=special,
        assessment_base=base,
    )


def calculate_employee_contributions(
    salary: Decimal,
    special_payments: Decimal,
    config: SocialSecurityConfig,
) -> ContributionResult:
    """Return employee contributions on salary and special payments.

    Regular salary is assessed up to ``max_assessment_base``; special payments
    only use whatever headroom the regular salary leaves. The branch breakdown
    is derived from the same capped regular base as the total.
    """

    capped_regular = min(salary, config.max_assessment_base)
    headroom = config.max_assessment_base - capped_regular
    capped_special = max(ZERO, min(special_payments, headroom))

    regular = round_currency(capped_regular * config.employee_rate_regular)
    special = round_currency(capped_special * config.employee_rate_special)

    return ContributionResult(
        total=round_currency(regular + special),
        breakdown=_employee_branches(round_currency(capped_regular), config, special),
    )


def estimate_employee_breakdown(
    paid_total: Decimal, salary: Decimal, config: SocialSecurityConfig
) -> ContributionResult:
    """Use a contribution total taken from the payslip.

    Payslips only report the total, so the branch split is estimated from the
    capped salary and no portion is attributed to special payments.
    """

    capped_regular = round_currency(min(salary, config.max_assessment_base))
    return ContributionResult(
        total=round_currency(paid_total),
        breakdown=_employee_branches(capped_regular, config, None),
    )


def clamp_assessment_base(profit: Decimal, config: SocialSecurityConfig) -> Decimal:
    """Clamp ``profit`` into the SVS minimum/maximum assessment base."""

    return round_currency(
        min(max(profit, config.min_assessment_base), config.max_assessment_base)
    )


def calculate_self_employed_contributions(
    profit: Decimal, config: SocialSecurityConfig
) -> ContributionResult:
    """Return SVS contributions (pension, health, accident) on ``profit``."""

    base = clamp_assessment_base(profit, config)
    rates = config.component_rates

    pension = round_currency(base * rates.pension)
    health = round_currency(base * rates.health)
    accident = round_currency(base * rates.accident)

    return ContributionResult(
        total=round_currency(pension + health + accident),
        breakdown=SocialSecurityBreakdown(
            pension=pension,
            health=health,
            accident=accident,
            assessment_base=base,
        ),
    )


def empty_employee_breakdown() -> SocialSecurityBreakdown:
    zero = round_currency(ZERO)
    return SocialSecurityBreakdown(
        pension=zero, health=zero, unemployment=zero, accident=zero
    )


def empty_self_employed_breakdown() -> SocialSecurityBreakdown:
    zero = round_currency(ZERO)
    return SocialSecurityBreakdown(pension=zero, health=zero, accident=zero)


__all__ = [
    "calculate_employee_contributions",
    "calculate_self_employed_contributions",
    "clamp_assessment_base",
    "empty_employee_breakdown",
    "empty_self_employed_breakdown",
    "estimate_employee_breakdown",
]
