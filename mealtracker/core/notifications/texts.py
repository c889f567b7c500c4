"""Localized notification texts."""
from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Optional

from loguru import logger


class Language(str, Enum):
    EN = "en"
    DE = "de"
    ES = "es"


DEFAULT_LANGUAGE = Language.EN

SUPPORTED_LANGUAGES = frozenset(language.value for language in Language)


class NotificationText(NamedTuple):
    title: str
    body: str


_INTERVAL_REMINDER = {
    Language.EN: ("Mealtracker Reminder", "Last meal was {hours} hours ago"),
    Language.DE: ("Mealtracker Erinnerung", "Letzte Mahlzeit war vor {hours} Stunden"),
    Language.ES: ("Recordatorio Mealtracker", "Última comida fue hace {hours} horas"),
}

_DAILY_REMINDER = {
    Language.EN: ("Mealtracker", "Have you tracked your meals today?"),
    Language.DE: ("Mealtracker", "Hast du heute schon Meals getrackt?"),
    Language.ES: ("Mealtracker", "¿Ya registraste tus comidas hoy?"),
}


def normalize_language(language: Optional[str]) -> Language:
    """Map a stored language code to a supported language, English otherwise."""

    if isinstance(language, Language):
        return language
    if language in SUPPORTED_LANGUAGES:
        return Language(language)
    if language is not None:
        logger.warning("Unsupported notification language, falling back to English", language=language)
    return DEFAULT_LANGUAGE


def resolve(language: Optional[str], hours_elapsed: int) -> NotificationText:
    """Return the interval reminder title and body for ``language``."""

    title, body = _INTERVAL_REMINDER[normalize_language(language)]
    return NotificationText(title=title, body=body.format(hours=hours_elapsed))


def resolve_daily_reminder(language: Optional[str]) -> NotificationText:
    title, body = _DAILY_REMINDER[normalize_language(language)]
    return NotificationText(title=title, body=body)
