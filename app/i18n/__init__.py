# -*- coding: utf-8 -*-
"""
Localized notification strings.

Lookup order for a key:
1. requested language (unknown codes resolve to DEFAULT_LANGUAGE)
2. FALLBACK_LANGUAGE (en)
3. the key itself

A template whose placeholders do not match the supplied values is returned
unformatted; notification jobs must never fail on a text.
"""

import logging
from typing import Optional

from . import ru, en

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "ru"
FALLBACK_LANGUAGE = "en"

LANGUAGES = {
    "ru": ru.LANG,
    "en": en.LANG,
}


def _lookup(language: str, key: str) -> Optional[str]:
    catalog = LANGUAGES.get(language) or LANGUAGES[DEFAULT_LANGUAGE]
    text = catalog.get(key)
    if text is not None:
        return text

    text = LANGUAGES[FALLBACK_LANGUAGE].get(key)
    if text is not None:
        logger.warning("I18N_FALLBACK [key=%s, lang=%s]", key, language)
    return text


def get_text(language: str, key: str, **kwargs) -> str:
    """
    Localized text for key, formatted with kwargs.

    Example:
        get_text("ru", "reminder.one_day.paid", date="25.07.2025")
    """
    text = _lookup(language, key)
    if text is None:
        logger.error("I18N_MISSING_KEY [key=%s]", key)
        return key
    if not kwargs:
        return text
    try:
        return text.format(**kwargs)
    except (KeyError, IndexError) as e:
        logger.error("I18N_FORMAT_FAILED [key=%s, lang=%s, missing=%s]", key, language, e)
        return text


__all__ = ["get_text", "LANGUAGES", "DEFAULT_LANGUAGE", "FALLBACK_LANGUAGE"]
