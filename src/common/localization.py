# src/common/localization.py
"""
Localised message templates (push notification titles and bodies).
Loaded from config/lang_dict.json.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any


FALLBACK_LANGUAGE = "en"


def get_lang_dict_path() -> Path:
    return Path(__file__).parent.parent.parent / "config" / "lang_dict.json"


@lru_cache()
def load_lang_dict() -> dict[str, dict[str, str]]:
    """
    Loads the translation table.

    Returns:
        Mapping key -> {language: template}
    """
    lang_path = get_lang_dict_path()
    if not lang_path.exists():
        raise FileNotFoundError(f"Translation file not found: {lang_path}")

    with open(lang_path, "r", encoding="utf-8") as f:
        return json.load(f)


def get_text(
    key: str,
    lang: str = FALLBACK_LANGUAGE,
    default: str | None = None,
    **kwargs: Any,
) -> str:
    """
    Returns the template for ``key`` in ``lang`` formatted with ``kwargs``.

    Falls back to English, then to any available translation, then to
    ``default`` or ``[key]``.

    Example:
        >>> get_text("TRIP_ENDED_BODY", "en", amount=12900, currency="ks")
        "Your trip is complete. You earned 12900 ks"
    """
    try:
        lang_dict = load_lang_dict()
    except FileNotFoundError:
        return default or f"[{key}]"

    translations = lang_dict.get(key)
    if not translations:
        return default or f"[{key}]"

    text = translations.get(lang) or translations.get(FALLBACK_LANGUAGE)
    if not text:
        text = next(iter(translations.values()), f"[{key}]")

    if kwargs:
        try:
            text = text.format(**kwargs)
        except KeyError:
            pass

    return text
