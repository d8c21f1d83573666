"""Translation catalogue helpers backed by packaged JSON resources."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import cache
from importlib import resources
from string import Formatter
from typing import Any, Mapping

_BASE_LOCALE = "en"
_TRANSLATIONS_PACKAGE = "praxistax.translations"


@dataclass(frozen=True)
class Translator:
    """Callable helper for retrieving localized strings.

    Keyword arguments are interpolated into the message with
    :meth:`str.format`; unknown keys fall back to the base locale and then to
    the key itself.
    """

    locale: str
    _messages: Mapping[str, str]
    _fallback: Mapping[str, str]

    def __call__(self, key: str, **values: Any) -> str:
        template = self._messages.get(key) or self._fallback.get(key, key)
        if not values:
            return template
        return template.format(**values)


@cache
def available_locales() -> tuple[str, ...]:
    """Return the locales with a published catalogue."""

    root = resources.files(_TRANSLATIONS_PACKAGE)
    locales = sorted(
        entry.name.removesuffix(".json")
        for entry in root.iterdir()
        if entry.name.endswith(".json")
    )
    return tuple(locales) or (_BASE_LOCALE,)


@cache
def _load_messages(locale: str) -> Mapping[str, str]:
    resource = resources.files(_TRANSLATIONS_PACKAGE).joinpath(f"{locale}.json")
    if not resource.is_file():
        return {}

    with resource.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    messages = payload.get("messages") or {}
    if not isinstance(messages, dict):
        raise ValueError(f"Translation catalogue '{locale}' must map keys to strings")
    return {key: str(value) for key, value in messages.items()}


def normalise_locale(locale: str | None) -> str:
    """Normalise requested locale to a supported catalogue key."""

    if not locale:
        return _BASE_LOCALE

    normalized = locale.strip().lower().replace("_", "-").split("-")[0]
    return normalized if normalized in available_locales() else _BASE_LOCALE


def get_translator(locale: str | None = None) -> Translator:
    """Return a translator instance for the requested locale."""

    normalized = normalise_locale(locale)
    return Translator(
        locale=normalized,
        _messages=_load_messages(normalized),
        _fallback=_load_messages(_BASE_LOCALE),
    )


def _placeholders(template: str) -> set[str]:
    return {name for _, name, _, _ in Formatter().parse(template) if name}


def find_catalogue_issues() -> list[str]:
    """Report keys or placeholders that differ from the base catalogue."""

    base = _load_messages(_BASE_LOCALE)
    issues: list[str] = []
    for locale in available_locales():
        if locale == _BASE_LOCALE:
            continue
        messages = _load_messages(locale)
        for key in sorted(base.keys() - messages.keys()):
            issues.append(f"[{locale}] missing key '{key}'")
        for key in sorted(messages.keys() - base.keys()):
            issues.append(f"[{locale}] unknown key '{key}'")
        for key in sorted(base.keys() & messages.keys()):
            if _placeholders(base[key]) != _placeholders(messages[key]):
                issues.append(f"[{locale}] placeholders differ for '{key}'")
    return issues


__all__ = [
    "Translator",
    "available_locales",
    "find_catalogue_issues",
    "get_translator",
    "normalise_locale",
]
