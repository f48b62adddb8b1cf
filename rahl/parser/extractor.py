"""Rule-based feature extraction for app descriptions.

Maps free text to a ``FeatureSet`` with case-folded keyword matching.
Uses no AI calls, touches no I/O, and accepts any string (including the empty
one), so it doubles as the fallback when the language model is unavailable.
"""

from __future__ import annotations

import re

from .models import DEFAULT_SCREENS, FeatureSet, Theme


# ---------------------------------------------------------------------------
# Trigger table
# ---------------------------------------------------------------------------

# (FeatureSet field, trigger substrings, screen appended when triggered)
FEATURE_TRIGGERS: tuple[tuple[str, tuple[str, ...], str | None], ...] = (
    ("has_login", ("login", "sign in"), "LoginScreen"),
    ("has_database", ("database", "databases", "store", "save", "saved"), None),
    ("has_camera", ("camera", "photo"), None),
    ("has_maps", ("map", "location"), None),
    ("has_payments", ("payment", "payments", "checkout"), None),
    (
        "has_notifications",
        ("notification", "notifications", "notify", "alert", "alerts"),
        None,
    ),
)

# Flags whose keywords are common English words; these match whole words only.
WHOLE_WORD_FIELDS: frozenset[str] = frozenset(
    {"has_database", "has_payments", "has_notifications"}
)

DARK_THEME_TRIGGERS: tuple[str, ...] = ("dark",)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(description: str | None) -> FeatureSet:
    """Infer a ``FeatureSet`` from a plain-English app description.

    Every trigger whose keyword occurs in the case-folded text fires (as a
    substring, or as a whole word for ``WHOLE_WORD_FIELDS``);
    triggers are independent of one another.  Screens contributed by
    triggers are kept in table order without duplicates, and the
    ``HomeScreen``/``ProfileScreen`` pair is used when none fired.

    Examples::

        extract("A todo list app with dark mode").theme        -> Theme.DARK
        extract("App with login and camera").screens           -> ["LoginScreen"]
        extract("").screens                                    -> ["HomeScreen", "ProfileScreen"]
    """
    text = (description or "").casefold()

    flags: dict[str, bool] = {}
    screens: list[str] = []
    for field, keywords, screen in FEATURE_TRIGGERS:
        if field in WHOLE_WORD_FIELDS:
            hit = _matches_any_word(text, keywords)
        else:
            hit = _matches_any(text, keywords)
        flags[field] = hit
        if hit and screen and screen not in screens:
            screens.append(screen)

    theme = Theme.DARK if _matches_any(text, DARK_THEME_TRIGGERS) else Theme.LIGHT

    if not screens:
        screens = list(DEFAULT_SCREENS)

    return FeatureSet(screens=screens, theme=theme, **flags)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _matches_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _matches_any_word(text: str, keywords: tuple[str, ...]) -> bool:
    return any(re.search(rf"\b{re.escape(keyword)}\b", text) for keyword in keywords)
