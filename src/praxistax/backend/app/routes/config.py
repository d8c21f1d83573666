"""Expose the statutory tables behind the calculator.

Front-ends use these endpoints to show the thresholds, caps and rates that
apply to a year without duplicating the YAML tables.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from praxistax.backend.app.http import problem_response
from praxistax.backend.config.year_config import (
    TaxBracket,
    YearConfiguration,
    available_years,
    compare_years,
    load_manifest,
    load_year_configuration,
)
from praxistax.backend.services import parse_query_year
from praxistax.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise_bracket(bracket: TaxBracket) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "upper": float(bracket.upper_bound) if bracket.upper_bound is not None else None,
        "rate": float(bracket.rate),
    }
    if bracket.description:
        payload["description"] = bracket.description
    return payload


def _serialise_year(config: YearConfiguration) -> dict[str, Any]:
    entry = load_manifest().get_entry(config.year)
    sections = config.model_dump(
        mode="json",
        include={
            "social_security",
            "tax_credits",
            "deduction_limits",
            "special_payments",
            "practice_levies",
        },
    )
    return {
        "year": config.year,
        "status": entry.status,
        "meta": dict(config.meta),
        "tax_free_threshold": float(config.tax_free_threshold),
        "brackets": [_serialise_bracket(bracket) for bracket in config.brackets],
        **sections,
    }


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """Return all configured years with their full tables."""

    metadata = get_configuration_metadata()
    payload = {
        "years": [_serialise_year(load_year_configuration(year)) for year in available_years()],
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>")
def get_year(year: int) -> tuple[Any, int]:
    """Return the table for a configured ``year``."""

    try:
        configuration = load_year_configuration(year)
    except FileNotFoundError as exc:
        return problem_response(
            "not_found",
            status=404,
            message=str(exc),
            supported_years=list(available_years()),
        ).to_response()

    return jsonify(_serialise_year(configuration)), 200


@blueprint.get("/compare")
def compare() -> tuple[Any, int]:
    """Compare the headline values of two years, e.g. ``?from=2024&to=2025``."""

    first = parse_query_year(request, "from")
    second = parse_query_year(request, "to")

    return jsonify(compare_years(first, second)), 200
