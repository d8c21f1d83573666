"""Utilities for validating year configuration data and surfacing issues."""

from __future__ import annotations

import argparse
from collections import Counter
from decimal import Decimal
from typing import Sequence

from .year_config import (
    DeductionLimits,
    PracticeLevyConfig,
    SocialSecurityConfig,
    SpecialPaymentsConfig,
    TaxBracket,
    YearConfiguration,
    available_years,
    load_year_configuration,
)

KNOWN_PRACTICE_TYPES = frozenset({"kassenarzt", "wahlarzt", "mixed"})


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_rate(scope: str, label: str, value: Decimal) -> list[str]:
    if value < 0 or value > 1:
        return [_format_scope(scope, f"{label} rate {value} must be between 0 and 1")]
    return []


def _validate_brackets(brackets: Sequence[TaxBracket]) -> list[str]:
    errors: list[str] = []

    if not brackets:
        return [_format_scope("tax_brackets", "no brackets defined")]

    uppers = [bracket.upper_bound for bracket in brackets if bracket.upper_bound is not None]
    if uppers != sorted(uppers):
        errors.append(_format_scope("tax_brackets", "upper limits must be ascending"))

    duplicates = [value for value, count in Counter(uppers).items() if count > 1]
    if duplicates:
        errors.append(
            _format_scope(
                "tax_brackets",
                f"duplicate upper limits detected: {sorted(duplicates)}",
            )
        )

    rates = [bracket.rate for bracket in brackets]
    if rates != sorted(rates):
        errors.append(_format_scope("tax_brackets", "rates must not decrease"))

    for index, bracket in enumerate(brackets):
        errors.extend(_validate_rate(f"tax_brackets[{index}]", "bracket", bracket.rate))

    if brackets[-1].upper_bound is not None:
        errors.append(
            _format_scope("tax_brackets", "final bracket must have an open upper limit")
        )

    return errors


def _validate_social_security(config: SocialSecurityConfig) -> list[str]:
    scope = "social_security"
    errors: list[str] = []

    errors.extend(_validate_rate(scope, "employee regular", config.employee_rate_regular))
    errors.extend(_validate_rate(scope, "employee special", config.employee_rate_special))
    errors.extend(_validate_rate(scope, "self-employed", config.self_employed_rate))

    components = config.component_rates
    for label in ("pension", "health", "unemployment", "accident"):
        errors.extend(
            _validate_rate(f"{scope}.component_rates", label, getattr(components, label))
        )

    if config.min_assessment_base > config.max_assessment_base:
        errors.append(
            _format_scope(
                scope,
                "minimum assessment base cannot exceed the maximum assessment base",
            )
        )

    return errors


def _validate_deduction_limits(limits: DeductionLimits) -> list[str]:
    scope = "deduction_limits"
    errors: list[str] = []

    errors.extend(_validate_rate(scope, "gewinnfreibetrag", limits.gewinnfreibetrag_rate))

    if limits.homeoffice_daily > limits.homeoffice_monthly_max:
        errors.append(
            _format_scope(
                scope,
                "daily home-office amount cannot exceed the monthly maximum",
            )
        )

    for label in (
        "gewinnfreibetrag_limit",
        "life_insurance_max",
        "pension_contribution_max",
        "standard_employment_allowance",
    ):
        if getattr(limits, label) < 0:
            errors.append(_format_scope(scope, f"{label} must be non-negative"))

    return errors


def _validate_special_payments(config: SpecialPaymentsConfig) -> list[str]:
    scope = "special_payments"
    errors = _validate_rate(scope, "special payments", config.tax_rate)
    if config.tax_free_limit < 0:
        errors.append(_format_scope(scope, "tax-free limit must be non-negative"))
    return errors


def _validate_practice_levies(config: PracticeLevyConfig) -> list[str]:
    scope = "practice_levies"
    errors: list[str] = []

    errors.extend(_validate_rate(scope, "chamber fee", config.chamber_fee_rate))
    errors.extend(_validate_rate(scope, "VAT", config.vat_rate))

    unknown = sorted(set(config.exempt_practice_types) - KNOWN_PRACTICE_TYPES)
    if unknown:
        errors.append(
            _format_scope(scope, f"unknown exempt practice types: {unknown}")
        )

    return errors


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(_validate_brackets(config.brackets))
    errors.extend(_validate_social_security(config.social_security))
    errors.extend(_validate_deduction_limits(config.deduction_limits))
    errors.extend(_validate_special_payments(config.special_payments))
    errors.extend(_validate_practice_levies(config.practice_levies))

    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured tax years and report statutory table issues."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except FileNotFoundError as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
