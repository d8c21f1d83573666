"""Tax credits and the flat-rate taxation of special payments."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from praxistax.backend.config.year_config import SpecialPaymentsConfig, TaxCreditConfig

from .utils import ZERO, ensure_non_negative, round_currency


def statutory_sole_earner_credit(number_of_children: int, config: TaxCreditConfig) -> Decimal:
    """Return the sole-earner credit the household qualifies for."""

    if number_of_children <= 0:
        return config.sole_earner_single
    if number_of_children == 1:
        return config.sole_earner_one_child
    return config.sole_earner_more_children


def calculate_credits(
    has_commuter_credit: bool,
    claimed: Mapping[str, Decimal],
    config: TaxCreditConfig,
    number_of_children: int = 0,
) -> Decimal:
    """Return the total of all credits deducted from the bracket tax.

    A claimed ``sole_earner_credit`` is capped at the statutory amount for
    ``number_of_children``.
    """

    total = config.commuter_credit if has_commuter_credit else ZERO
    for name, amount in claimed.items():
        if not amount:
            continue
        if name == "sole_earner_credit":
            amount = min(amount, statutory_sole_earner_credit(number_of_children, config))
        total += amount
    return round_currency(total)


def apply_credits(bracket_tax: Decimal, credits: Decimal) -> Decimal:
    """Credits reduce the tax down to zero; they are never refunded here."""

    return ensure_non_negative(bracket_tax - credits)


def calculate_special_payments_tax(
    special_gross: Decimal, special_ss: Decimal, config: SpecialPaymentsConfig
) -> Decimal:
    """Tax the 13th/14th salary above the tax-free limit at the fixed rate."""

    net = ensure_non_negative(special_gross - special_ss)
    if net <= config.tax_free_limit:
        return round_currency(ZERO)
    return round_currency((net - config.tax_free_limit) * config.tax_rate)


__all__ = [
    "apply_credits",
    "calculate_credits",
    "calculate_special_payments_tax",
    "statutory_sole_earner_credit",
]
