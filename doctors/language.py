"""Language tags: label resolution, URL detection and URL round-tripping.

Display strings are resolved with a fixed fallback chain (requested
language, ``zh-HK``, ``zh-CN``, ``en``). This is used for the vocabulary and
for display only; filter matching in :mod:`doctors.filters` deliberately
accepts any language.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .models import FALLBACK_LANGS, PRIMARY_LANG, LangMap

logger = logging.getLogger(__name__)

SUPPORTED_LANGS: tuple[str, ...] = (PRIMARY_LANG, "zh-HK")

# Spellings seen in links and path prefixes, mapped to the canonical tag.
LANG_SYNONYMS: Dict[str, str] = {
    "zh-hk": "zh-HK",
    "zh_hk": "zh-HK",
    "zhhk": "zh-HK",
    "zh-hant": "zh-HK",
    "zh": "zh-HK",
    "en": PRIMARY_LANG,
    "en-us": PRIMARY_LANG,
    "en-gb": PRIMARY_LANG,
}


def resolve_label(
    values: Optional[Dict[str, str]],
    lang: str,
    fallbacks: Iterable[str] = FALLBACK_LANGS,
) -> str:
    """Return a single display string for ``lang`` or ``""``."""
    if not values:
        return ""
    if isinstance(values, LangMap):
        return values.resolve(lang, fallbacks)
    return LangMap(values).resolve(lang, fallbacks)


def resolve_exact(values: Optional[Dict[str, str]], lang: str) -> str:
    """Like :func:`resolve_label` but without any fallback language."""
    return resolve_label(values, lang, fallbacks=())


def normalize_language(candidate: Optional[str], default: str = PRIMARY_LANG) -> str:
    """Map a user supplied language spelling to a supported tag."""
    key = (candidate or "").strip().lower()
    if not key:
        return default
    lang = LANG_SYNONYMS.get(key)
    if lang is None:
        logger.debug("Unbekannte Sprache %r, nutze %s", candidate, default)
        return default
    return lang


def first_path_segment(path: Optional[str]) -> str:
    parts = [part for part in (path or "").split("/") if part]
    return parts[0].lower() if parts else ""


def resolve_initial_language(
    query_lang: Optional[str],
    path: Optional[str],
    default: str = PRIMARY_LANG,
) -> str:
    """Pick the display language from the ``lang`` query parameter or the path.

    The query parameter wins when present, even if it is not recognised; in
    that case the default language is used.
    """
    candidate = (query_lang or "").strip() or first_path_segment(path)
    return normalize_language(candidate, default)


def lang_param(lang: str) -> str:
    """URL form of a language tag (``zh-HK`` -> ``zh-hk``)."""
    return (lang or "").lower().replace("_", "-")


def url_with_lang(url: str, lang: str) -> str:
    """Return ``url`` with its ``lang`` query parameter set to ``lang``.

    Path, fragment and other parameters are kept as they are.
    """
    if not lang:
        return url
    parts = urlsplit(url)
    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "lang"]
    params.append(("lang", lang_param(lang)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))
