"""Tests for localized notification texts."""
from __future__ import annotations

import pytest

from mealtracker.core.notifications.texts import Language, resolve, resolve_daily_reminder


@pytest.mark.parametrize(
    "language,title,body",
    [
        ("en", "Mealtracker Reminder", "Last meal was 4 hours ago"),
        ("de", "Mealtracker Erinnerung", "Letzte Mahlzeit war vor 4 Stunden"),
        ("es", "Recordatorio Mealtracker", "Última comida fue hace 4 horas"),
    ],
)
def test_interval_reminder_text(language: str, title: str, body: str) -> None:
    text = resolve(language, 4)

    assert text.title == title
    assert text.body == body


@pytest.mark.parametrize("language", ["fr", None, "", "EN"])
def test_unknown_language_falls_back_to_english(language) -> None:
    assert resolve(language, 5) == resolve("en", 5)
    assert resolve_daily_reminder(language) == resolve_daily_reminder("en")


def test_enum_member_is_accepted() -> None:
    assert resolve(Language.DE, 7).body == "Letzte Mahlzeit war vor 7 Stunden"


def test_daily_reminder_text() -> None:
    assert resolve_daily_reminder("de").body == "Hast du heute schon Meals getrackt?"
    assert resolve_daily_reminder("en").title == "Mealtracker"
