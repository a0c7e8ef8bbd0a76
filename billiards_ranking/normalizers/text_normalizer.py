#!/usr/bin/env python3
"""
Player Name Normalizer

Normalizes player names for identity matching (the same player typed with
different spacing or case) and builds locale-aware collation keys so that
name ordering is stable and diacritics-insensitive across platforms.
"""

import re
import unicodedata
from typing import Iterable, List


# Letters that a locale treats as distinct primary letters, with the primary
# weight they sort at (right after their base letter).
LOCALE_PRIMARY_LETTERS = {
    "es": {"ñ": "n\x7f"},
}

# Latin letters without a canonical decomposition, folded to their base
# letters at the primary level.
PRIMARY_FOLDS = {
    "ł": "l",
    "ø": "o",
    "đ": "d",
    "ð": "d",
    "ħ": "h",
    "ı": "i",
    "æ": "ae",
    "œ": "oe",
    "ß": "ss",
    "þ": "th",
}

LEVEL_SEPARATOR = "\x00"


def clean_display_name(name) -> str:
    """Trim and collapse internal whitespace, keeping the original case."""
    return re.sub(r"\s+", " ", str(name or "")).strip()


def normalize_name(name) -> str:
    """
    Normalize a player name for identity matching.

    Steps:
    1. Coerce to string (None becomes "")
    2. Strip and collapse whitespace runs to a single space
    3. Convert to lowercase

    Example:
        >>> normalize_name("  Juan   PEREZ ")
        'juan perez'
    """
    return clean_display_name(name).lower()


def strip_diacritics(text: str, keep: Iterable[str] = ()) -> str:
    """Remove combining marks: 'Ramón' -> 'Ramon'. Characters in ``keep`` survive."""
    keep = set(keep)
    out = []
    for ch in text:
        if ch in keep:
            out.append(ch)
            continue
        nfkd = unicodedata.normalize("NFKD", ch)
        out.append("".join(c for c in nfkd if not unicodedata.combining(c)))
    return "".join(out)


def collation_key(name, locale: str = "es") -> str:
    """
    Build a multi-level sort key for a name under ``locale``.

    Levels, compared in order:
    - primary: case- and accent-insensitive letters (locale letters such as
      Spanish 'ñ' stay distinct and sort after their base letter)
    - secondary: accents
    - tertiary: case, lowercase first

    Args:
        name: Player name
        locale: Language code; unknown locales use the generic rules

    Returns:
        String key usable with plain string comparison
    """
    text = unicodedata.normalize("NFC", clean_display_name(name))
    folded = text.casefold()
    special = LOCALE_PRIMARY_LETTERS.get(locale.split("-")[0].split("_")[0].lower(), {})

    primary = strip_diacritics(folded, keep=special.keys())
    for letter, base in PRIMARY_FOLDS.items():
        primary = primary.replace(letter, base)
    for letter, weight in special.items():
        primary = primary.replace(letter, weight)

    secondary = folded
    tertiary = text.swapcase()

    return LEVEL_SEPARATOR.join([primary, secondary, tertiary])


def suggest_names(query, names: Iterable[str], limit: int = 6) -> List[str]:
    """
    Known names whose normalized form contains the normalized query.

    Returns an empty list for a blank query. Order follows ``names``.
    """
    needle = normalize_name(query)
    if not needle:
        return []
    matches = [name for name in names if needle in normalize_name(name)]
    return matches[:max(0, limit)]
