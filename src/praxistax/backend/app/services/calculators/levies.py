"""Practice levies: medical chamber contribution and VAT on private fees."""

from __future__ import annotations

from decimal import Decimal

from praxistax.backend.config.year_config import PracticeLevyConfig

from .utils import ZERO, round_currency


def calculate_chamber_fee(
    profit: Decimal, practice_type: str | None, config: PracticeLevyConfig
) -> Decimal:
    """Return the Ärztekammer contribution for a private or mixed practice."""

    if not config.applies_to(practice_type):
        return round_currency(ZERO)
    return round_currency(config.chamber_base_fee + profit * config.chamber_fee_rate)


def calculate_vat(
    revenue: Decimal, practice_type: str | None, config: PracticeLevyConfig
) -> Decimal:
    """Return the VAT contained in gross ``revenue``."""

    if not config.applies_to(practice_type) or revenue <= 0:
        return round_currency(ZERO)
    return round_currency(revenue * config.vat_rate / (1 + config.vat_rate))


__all__ = ["calculate_chamber_fee", "calculate_vat"]
