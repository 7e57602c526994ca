"""
Data loading module.

Provides the storage contract, its PostgreSQL and in-memory implementations,
match resolution, roster matching and per-sheet transactional loaders
for player, match and KPI definition sheets.
"""

from .loaders import KpiDefinitionLoader, LoadResult, MatchLoader, PlayerStatisticsLoader
from .memory import InMemoryStore
from .postgres import PostgresStore
from .resolver import MatchResolver
from .roster import RosterMatcher
from .store import StatisticsStore

__all__ = [
    'KpiDefinitionLoader',
    'LoadResult',
    'MatchLoader',
    'PlayerStatisticsLoader',
    'InMemoryStore',
    'PostgresStore',
    'MatchResolver',
    'RosterMatcher',
    'StatisticsStore',
]
