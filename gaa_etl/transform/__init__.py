"""
Data transformation module.

Provides name cleaning, score parsing and position enrichment.
"""

from .cleaners import (
    clean_name,
    normalize_competition_type,
    normalize_player_name,
    normalize_team_assignment,
    split_full_name,
)
from .positions import PositionEnricher
from .scores import Score, parse_score

__all__ = [
    'clean_name',
    'normalize_competition_type',
    'normalize_player_name',
    'normalize_team_assignment',
    'split_full_name',
    'PositionEnricher',
    'Score',
    'parse_score',
]
