"""Unit coverage for year configuration discovery, fallback and parsing."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from shutil import copy2

import pytest
import yaml

from praxistax.backend.config import year_config
from praxistax.backend.config.schema import ConfigurationError, YearConfiguration


@pytest.fixture()
def isolated_config_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Return a temporary configuration directory patched into ``year_config``."""

    original_directory = year_config.CONFIG_DIRECTORY
    for filename in ("2023.yaml", "2024.yaml", "2025.yaml", "manifest.yaml"):
        copy2(original_directory / filename, tmp_path / filename)

    monkeypatch.setattr(year_config, "CONFIG_DIRECTORY", tmp_path)
    monkeypatch.setattr(year_config, "MANIFEST_FILE", tmp_path / "manifest.yaml")
    year_config.load_year_configuration.cache_clear()
    year_config.load_manifest.cache_clear()

    yield tmp_path

    year_config.load_year_configuration.cache_clear()
    year_config.load_manifest.cache_clear()


def _append_manifest_year(directory: Path, year: int) -> None:
    manifest_path = directory / "manifest.yaml"
    manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    manifest["years"].append({"year": year})
    manifest_path.write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")
    year_config.load_manifest.cache_clear()


def test_available_years_lists_manifest_entries() -> None:
    assert year_config.available_years() == (2023, 2024, 2025)
    assert year_config.latest_year() == 2025


def test_load_year_configuration_parses_2025_table() -> None:
    config = year_config.load_year_configuration(2025)

    assert config.year == 2025
    assert config.tax_free_threshold == Decimal("12816")
    assert [bracket.rate for bracket in config.brackets] == [
        Decimal("0.0"),
        Decimal("0.20"),
        Decimal("0.30"),
        Decimal("0.41"),
        Decimal("0.48"),
        Decimal("0.50"),
        Decimal("0.55"),
    ]
    assert config.brackets[-1].upper_bound is None
    assert config.social_security.employee_rate_regular == Decimal("0.1812")
    assert config.social_security.max_assessment_base == Decimal("90000")
    assert config.deduction_limits.gewinnfreibetrag_limit_basis == "profit"
    assert tuple(config.practice_levies.exempt_practice_types) == ("kassenarzt",)


def test_configured_year_resolves_to_itself() -> None:
    assert year_config.resolve_tax_year(2024) == 2024


@pytest.mark.parametrize(
    ("requested", "expected"),
    [(2026, 2025), (2040, 2025), (2022, 2023), (2000, 2023)],
)
def test_unconfigured_year_falls_back_to_nearest(requested: int, expected: int) -> None:
    assert year_config.resolve_tax_year(requested) == expected


def test_fallback_prefers_later_year_on_tie(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(year_config, "available_years", lambda: (2023, 2025))

    assert year_config.resolve_tax_year(2024) == 2025


def test_missing_year_defaults_to_current_calendar_year(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(year_config, "available_years", lambda: (2023, 2024, 2025))

    resolved = year_config.resolve_tax_year(None)

    assert resolved in (2023, 2024, 2025)


@pytest.mark.parametrize("year", [1999, 2101])
def test_out_of_range_year_is_rejected(year: int) -> None:
    with pytest.raises(ValueError, match="outside the supported range"):
        year_config.resolve_tax_year(year)


def test_fallback_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("INFO", logger=year_config.__name__):
        config = year_config.get_year_configuration(2030)

    assert config.year == 2025
    assert "2030" in caplog.text


def test_new_manifest_year_is_discovered(isolated_config_directory: Path) -> None:
    source = (isolated_config_directory / "2025.yaml").read_text(encoding="utf-8")
    (isolated_config_directory / "2026.yaml").write_text(
        source.replace("year: 2025", "year: 2026"), encoding="utf-8"
    )
    _append_manifest_year(isolated_config_directory, 2026)

    assert year_config.available_years() == (2023, 2024, 2025, 2026)
    assert year_config.load_year_configuration(2026).year == 2026


def test_manifest_year_without_file_raises(isolated_config_directory: Path) -> None:
    _append_manifest_year(isolated_config_directory, 2027)

    with pytest.raises(FileNotFoundError):
        year_config.load_year_configuration(2027)


def test_undeclared_year_raises_file_not_found() -> None:
    with pytest.raises(FileNotFoundError):
        year_config.load_year_configuration(2019)


def test_year_mismatch_is_a_configuration_error(isolated_config_directory: Path) -> None:
    source = (isolated_config_directory / "2025.yaml").read_text(encoding="utf-8")
    (isolated_config_directory / "2026.yaml").write_text(source, encoding="utf-8")
    _append_manifest_year(isolated_config_directory, 2026)

    with pytest.raises(ConfigurationError, match="mismatch"):
        year_config.load_year_configuration(2026)


def test_empty_manifest_is_a_configuration_error(isolated_config_directory: Path) -> None:
    (isolated_config_directory / "manifest.yaml").write_text("years: []\n", encoding="utf-8")
    year_config.load_manifest.cache_clear()

    with pytest.raises(ConfigurationError):
        year_config.resolve_tax_year(2025)


def _raw_2025() -> dict:
    path = year_config.CONFIG_DIRECTORY / "2025.yaml"
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def test_descending_brackets_are_rejected() -> None:
    raw = _raw_2025()
    raw["tax_brackets"][1]["upper"] = 10000

    with pytest.raises(ValueError, match="ascending"):
        YearConfiguration.model_validate(raw)


def test_decreasing_rates_are_rejected() -> None:
    raw = _raw_2025()
    raw["tax_brackets"][2]["rate"] = 0.1

    with pytest.raises(ValueError, match="must not decrease"):
        YearConfiguration.model_validate(raw)


def test_closed_final_bracket_is_rejected() -> None:
    raw = _raw_2025()
    raw["tax_brackets"][-1]["upper"] = 5000000

    with pytest.raises(ValueError, match="open upper bound"):
        YearConfiguration.model_validate(raw)


def test_assessment_base_limits_must_be_ordered() -> None:
    raw = _raw_2025()
    raw["social_security"]["min_assessment_base"] = 100000

    with pytest.raises(ValueError, match="max_assessment_base"):
        YearConfiguration.model_validate(raw)


def test_unknown_configuration_keys_are_rejected() -> None:
    raw = _raw_2025()
    raw["deduction_limits"]["unexpected"] = 1

    with pytest.raises(ValueError):
        YearConfiguration.model_validate(raw)


def test_compare_years_reports_headline_changes() -> None:
    comparison = year_config.compare_years(2024, 2025)

    assert comparison["year1"] == 2024
    assert comparison["year2"] == 2025
    changes = comparison["changes"]
    assert changes["tax_free_threshold"] == {"2024": 12200.0, "2025": 12816.0}
    assert changes["max_assessment_base"] == {"2024": 88200.0, "2025": 90000.0}
    assert changes["commuter_credit"] == {"2024": 400.0, "2025": 421.0}
    assert changes["pension_contribution_max"] == {"2024": 3000.0, "2025": 3100.0}
