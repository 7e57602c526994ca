"""
Name and label standardisation.

Handles:
- Player name normalisation for roster and position lookups
- First/last name splitting for new roster entries
- Competition type normalisation (Championship, League, Cup, Friendly)
- Team abbreviations
- KPI team assignments (Home, Opposition, Both)
"""

import logging
import re
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

COMPETITION_TYPES = ("Championship", "League", "Cup", "Friendly")
DEFAULT_COMPETITION_TYPE = "League"

TEAM_ASSIGNMENTS = ("Home", "Opposition", "Both")
# Spellings seen in the KPI definitions sheet
TEAM_ASSIGNMENT_TYPOS = {"oppostion": "Opposition"}


def clean_name(name: Optional[str]) -> str:
    """Trim and collapse internal whitespace, keeping case."""
    if name is None:
        return ""
    return _WHITESPACE.sub(" ", str(name).strip())


def normalize_player_name(name: Optional[str]) -> str:
    """
    Normalise a player name for lookups.

    "  Seamus  O'Kane " and "seamus o'kane" normalise to the same key.
    """
    return clean_name(name).casefold()


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    Split a full name into (first_name, last_name) on the first space.

    Single-word names get an empty last name.
    """
    parts = clean_name(full_name).split(" ")
    if not parts or not parts[0]:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], " ".join(parts[1:])


def normalize_competition_type(competition: Optional[str], context: str = "") -> str:
    """
    Map a competition label onto one of the known competition types.

    Args:
        competition: Raw competition word from the sheet (e.g. "championship")
        context: Sheet name, used only for the log message

    Returns:
        Canonical competition type; unknown labels fall back to League
    """
    label = clean_name(competition)
    for known in COMPETITION_TYPES:
        if label.lower() == known.lower():
            return known

    logger.warning(
        f"Invalid competition type '{label}' in '{context}'. "
        f"Defaulting to '{DEFAULT_COMPETITION_TYPE}'."
    )
    return DEFAULT_COMPETITION_TYPE


def team_abbreviation(team_name: str) -> str:
    """First three letters of a team name, upper-cased."""
    name = clean_name(team_name)
    return name[:3].upper()


def normalize_team_assignment(value: Optional[str]) -> str:
    """
    Canonical KPI team assignment ("home" -> "Home", "Oppostion" -> "Opposition").

    Unrecognised values are returned cleaned but otherwise unchanged so the
    validator can report them.
    """
    label = clean_name(value)
    key = label.lower()
    if key in TEAM_ASSIGNMENT_TYPOS:
        logger.info(f"Normalized team assignment: '{label}' -> '{TEAM_ASSIGNMENT_TYPOS[key]}'")
        return TEAM_ASSIGNMENT_TYPOS[key]
    for known in TEAM_ASSIGNMENTS:
        if key == known.lower():
            return known
    return label
