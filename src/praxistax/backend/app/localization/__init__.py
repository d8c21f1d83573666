"""Locale-aware labels and advisory messages for calculation results."""

from .catalog import (
    Translator,
    available_locales,
    find_catalogue_issues,
    get_translator,
    normalise_locale,
)

__all__ = [
    "Translator",
    "available_locales",
    "find_catalogue_issues",
    "get_translator",
    "normalise_locale",
]
