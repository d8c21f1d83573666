"""Progressive income tax over the configured bracket table."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import reduce

from praxistax.backend.app.models import BracketBreakdownEntry, ProgressiveTaxResult
from praxistax.backend.config.year_config import TaxBracket

from .utils import HUNDRED, ZERO, format_percentage, round_currency


@dataclass(frozen=True, slots=True)
class _Walk:
    """Running state of the bracket walk."""

    income: Decimal
    lower: Decimal = ZERO
    total: Decimal = ZERO
    entries: tuple[BracketBreakdownEntry, ...] = ()


def _group_thousands(amount: Decimal) -> str:
    whole = amount.quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return f"{int(whole):,}".replace(",", ".")


def bracket_label(lower: Decimal, upper: Decimal, rate: Decimal) -> str:
    """Return a label such as ``"€12.816 - €20.818 (20%)"``."""

    return f"€{_group_thousands(lower)} - €{_group_thousands(upper)} ({format_percentage(rate)})"


def _step(state: _Walk, bracket: TaxBracket) -> _Walk:
    if state.income <= state.lower:
        return state

    upper = bracket.upper_bound
    ceiling = state.income if upper is None else min(state.income, upper)
    portion = round_currency(ceiling - state.lower)
    tax = round_currency(portion * bracket.rate)
    entry = BracketBreakdownEntry(
        label=bracket_label(state.lower, ceiling, bracket.rate),
        lower=state.lower,
        upper=upper if upper is not None else ceiling,
        rate=round_currency(bracket.rate * HUNDRED),
        taxable_amount=portion,
        tax=tax,
    )
    return _Walk(
        income=state.income,
        lower=ceiling,
        total=state.total + tax,
        entries=state.entries + (entry,),
    )


def calculate_progressive_tax(
    income: Decimal, brackets: Sequence[TaxBracket]
) -> ProgressiveTaxResult:
    """Tax ``income`` bracket by bracket, collecting the per-bracket shares."""

    if income <= 0:
        return ProgressiveTaxResult(total=round_currency(ZERO))

    walk = reduce(_step, brackets, _Walk(income=round_currency(income)))
    return ProgressiveTaxResult(total=round_currency(walk.total), breakdown=walk.entries)


def marginal_rate(income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Return the rate in percent that applies to the next euro of ``income``."""

    for bracket in brackets:
        if bracket.upper_bound is None or income <= bracket.upper_bound:
            return round_currency(bracket.rate * HUNDRED)
    return round_currency(brackets[-1].rate * HUNDRED)


__all__ = ["bracket_label", "calculate_progressive_tax", "marginal_rate"]
