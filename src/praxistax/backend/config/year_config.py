"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    Amount,
    ComponentRates,
    ConfigurationError,
    DeductionLimits,
    PracticeLevyConfig,
    SocialSecurityConfig,
    SpecialPaymentsConfig,
    TaxBracket,
    TaxCreditConfig,
    TaxYearManifest,
    TaxYearManifestEntry,
    YearConfiguration,
    to_decimal,
)

_LOGGER = logging.getLogger(__name__)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"

MIN_TAX_YEAR = 2000
MAX_TAX_YEAR = 2100


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> TaxYearManifest:
    """Load and cache the configuration manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Configuration manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return TaxYearManifest.model_validate(raw_manifest)
    except ValidationError as error:  # pragma: no cover - defensive
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


def manifest_entries() -> Sequence[TaxYearManifestEntry]:
    """Expose the configured manifest entries."""

    return load_manifest().years


@lru_cache(maxsize=8)
def load_year_configuration(year: int) -> YearConfiguration:
    """Load configuration for the specified tax year from disk."""

    try:
        manifest_entry = load_manifest().get_entry(year)
    except KeyError as exc:
        raise FileNotFoundError(f"Configuration for year {year} not declared in manifest") from exc

    config_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file for year {year} missing: {config_file.name}"
        )

    raw_config = _load_yaml(config_file)
    raw_config.setdefault("year", year)

    try:
        configuration = YearConfiguration.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(f"Configuration validation failed for {year}: {error}") from error

    if configuration.year != year:
        raise ConfigurationError(
            f"Configuration year mismatch: expected {year}, found {configuration.year}"
        )

    return configuration


def available_years() -> Sequence[int]:
    """Return the tax years declared in the manifest."""

    return load_manifest().supported_years


def latest_year() -> int:
    """Return the most recent configured tax year."""

    years = available_years()
    if not years:
        raise ConfigurationError("No tax years are declared in the configuration manifest")
    return years[-1]


def resolve_tax_year(year: int | None = None) -> int:
    """Map ``year`` onto the configured table that should be used for it.

    ``None`` means the current calendar year. Configured years map onto
    themselves; any other year in ``MIN_TAX_YEAR..MAX_TAX_YEAR`` falls back to
    the nearest configured year, preferring the later one on a tie.
    """

    if year is None:
        year = date.today().year
    if isinstance(year, bool) or not isinstance(year, int):
        raise ValueError("Tax year must be an integer")
    if year < MIN_TAX_YEAR or year > MAX_TAX_YEAR:
        raise ValueError(
            f"Tax year {year} is outside the supported range "
            f"{MIN_TAX_YEAR}-{MAX_TAX_YEAR}"
        )

    years = available_years()
    if not years:
        raise ConfigurationError("No tax years are declared in the configuration manifest")
    if year in years:
        return year

    resolved = min(years, key=lambda candidate: (abs(candidate - year), -candidate))
    _LOGGER.info("No configuration for tax year %s; using %s instead", year, resolved)
    return resolved


def get_year_configuration(year: int | None = None) -> YearConfiguration:
    """Return the configuration that applies to ``year`` (with fallback)."""

    return load_year_configuration(resolve_tax_year(year))


def compare_years(first: int, second: int) -> dict[str, Any]:
    """Return the headline statutory values of two years side by side."""

    first_config = get_year_configuration(first)
    second_config = get_year_configuration(second)

    def _pair(attribute: str) -> dict[str, float]:
        return {
            str(first): float(_headline(first_config, attribute)),
            str(second): float(_headline(second_config, attribute)),
        }

    return {
        "year1": first,
        "year2": second,
        "changes": {
            "tax_free_threshold": _pair("tax_free_threshold"),
            "max_assessment_base": _pair("max_assessment_base"),
            "commuter_credit": _pair("commuter_credit"),
            "pension_contribution_max": _pair("pension_contribution_max"),
        },
    }


def _headline(config: YearConfiguration, attribute: str):
    if attribute == "tax_free_threshold":
        return config.tax_free_threshold
    if attribute == "max_assessment_base":
        return config.social_security.max_assessment_base
    if attribute == "commuter_credit":
        return config.tax_credits.commuter_credit
    if attribute == "pension_contribution_max":
        return config.deduction_limits.pension_contribution_max
    raise KeyError(attribute)


__all__ = [
    "Amount",
    "CONFIG_DIRECTORY",
    "ComponentRates",
    "ConfigurationError",
    "DeductionLimits",
    "MANIFEST_FILE",
    "MAX_TAX_YEAR",
    "MIN_TAX_YEAR",
    "PracticeLevyConfig",
    "SocialSecurityConfig",
    "SpecialPaymentsConfig",
    "TaxBracket",
    "TaxCreditConfig",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "YearConfiguration",
    "available_years",
    "compare_years",
    "get_year_configuration",
    "latest_year",
    "load_manifest",
    "load_year_configuration",
    "manifest_entries",
    "resolve_tax_year",
    "to_decimal",
]
