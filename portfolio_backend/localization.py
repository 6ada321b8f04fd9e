"""
Language negotiation and localized field resolution.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

SUPPORTED_LANGUAGES = ("en", "tr")
DEFAULT_LANGUAGE = "en"


def _bundle_value(bundle: Any, lang: str) -> str:
    if isinstance(bundle, Mapping):
        value = bundle.get(lang)
    else:
        value = getattr(bundle, lang, None)
    return value or ""


def pick_lang(bundle: Any, lang: str = DEFAULT_LANGUAGE) -> str:
    """
    Resolve a language bundle to a single string.

    Plain strings are returned unchanged. Otherwise the requested language
    wins if non-empty, then English, then Turkish, then the empty string.
    """
    if isinstance(bundle, str):
        return bundle
    if bundle is None:
        return ""
    for candidate in (lang, "en", "tr"):
        value = _bundle_value(bundle, candidate)
        if value:
            return value
    return ""


def negotiate_language(
    query_lang: Optional[str] = None, accept_language: Optional[str] = None
) -> str:
    """Pick the request language from ``?lang=`` or an Accept-Language header."""
    candidate = (query_lang or "").strip().lower()
    if not candidate and accept_language:
        first = accept_language.split(",")[0]
        candidate = first.split(";")[0].split("-")[0].strip().lower()
    if candidate in SUPPORTED_LANGUAGES:
        return candidate
    return DEFAULT_LANGUAGE
