"""
Composite score notation.

Team scorelines use "G-PP" (goals-points, e.g. "1-07" = 10 points).
Player scores may add a frees qualifier: "1-03(1f)".
"""

import re
from dataclasses import dataclass
from typing import Optional

TEAM_SCORE_PATTERN = re.compile(r"^(\d+)-(\d+)$")
PLAYER_SCORE_PATTERN = re.compile(r"^(\d+)-(\d+)(?:\((\d+)f\))?$")

POINTS_PER_GOAL = 3


@dataclass(frozen=True)
class Score:
    goals: int
    points: int
    frees: Optional[int] = None

    @property
    def total_points(self) -> int:
        return self.goals * POINTS_PER_GOAL + self.points

    def __str__(self) -> str:
        return f"{self.goals}-{self.points:02d}"


def parse_score(text: Optional[str]) -> Score:
    """
    Parse a "G-PP" scoreline.

    Raises:
        ValueError: If the text is not in goals-points notation
    """
    m = TEAM_SCORE_PATTERN.match((text or "").strip())
    if not m:
        raise ValueError(f"Invalid score format: {text!r} (expected G-PP)")
    return Score(int(m.group(1)), int(m.group(2)))


def try_parse_score(text: Optional[str]) -> Optional[Score]:
    try:
        return parse_score(text)
    except ValueError:
        return None


def parse_player_score(text: Optional[str]) -> Optional[Score]:
    """Parse "G-PP" or "G-PP(Nf)"; None when the text does not match."""
    m = PLAYER_SCORE_PATTERN.match((text or "").strip())
    if not m:
        return None
    frees = int(m.group(3)) if m.group(3) else None
    return Score(int(m.group(1)), int(m.group(2)), frees)
