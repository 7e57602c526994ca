"""
Match resolution: find the persisted match a player sheet belongs to.

Tiers, highest confidence first; each runs only if the previous found nothing:
1. Match number and date (date known)
2. Match number alone (date unknown), only when exactly one match carries that number
3. Match number plus opposition name (token-boundary, case-insensitive)
4. Date plus opposition name (date known)
"""

import logging
import re
from typing import List, Optional, Sequence

from gaa_etl.load.store import StatisticsStore
from gaa_etl.models import MatchRecord, SheetDescriptor
from gaa_etl.strategies import Strategy, StrategyChain, StrategyOutcome
from gaa_etl.transform.cleaners import clean_name

logger = logging.getLogger(__name__)

MIN_OPPOSITION_MATCH_LENGTH = 3


def opposition_matches(opposition: str, team_name: str) -> bool:
    """
    Case-insensitive opposition match anchored at word boundaries.

    The opposition must start at a word boundary in the team name; it may end
    mid-word because truncated sheet names cut the last word short
    ("Slaughtmanu" matches "Slaughtmanus"). A full team name found as whole
    words inside the opposition also matches ("Slaughtmanus GAC").
    Very short fragments never match.
    """
    opposition = clean_name(opposition)
    team_name = clean_name(team_name)
    if len(opposition) < MIN_OPPOSITION_MATCH_LENGTH or len(team_name) < MIN_OPPOSITION_MATCH_LENGTH:
        return False

    if re.search(rf"(?<!\w){re.escape(opposition)}", team_name, re.IGNORECASE):
        return True
    return bool(re.search(rf"(?<!\w){re.escape(team_name)}(?!\w)", opposition, re.IGNORECASE))


class NumberAndDateStrategy(Strategy[MatchRecord]):
    name = "number_and_date"

    def __init__(self, store: StatisticsStore):
        self.store = store

    async def attempt(self, descriptor: SheetDescriptor) -> Optional[MatchRecord]:
        if not descriptor.date_known:
            return None
        matches = await self.store.find_matches_by_number_and_date(descriptor.match_number, descriptor.match_date)
        return matches[0] if matches else None


class NumberOnlyStrategy(Strategy[MatchRecord]):
    name = "number_only"

    def __init__(self, store: StatisticsStore):
        self.store = store

    async def attempt(self, descriptor: SheetDescriptor) -> Optional[MatchRecord]:
        # Undated sheets only
        if descriptor.date_known:
            return None
        matches = await self.store.find_matches_by_number(descriptor.match_number)
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            logger.debug(f"Match number {descriptor.match_number} is ambiguous ({len(matches)} matches)")
        return None


class NumberAndOppositionStrategy(Strategy[MatchRecord]):
    name = "number_and_opposition"

    def __init__(self, store: StatisticsStore):
        self.store = store

    async def attempt(self, descriptor: SheetDescriptor) -> Optional[MatchRecord]:
        matches = await self.store.find_matches_by_number(descriptor.match_number)
        return _first_for_opposition(matches, descriptor.opposition)


class DateAndOppositionStrategy(Strategy[MatchRecord]):
    name = "date_and_opposition"

    def __init__(self, store: StatisticsStore):
        self.store = store

    async def attempt(self, descriptor: SheetDescriptor) -> Optional[MatchRecord]:
        if not descriptor.date_known:
            return None
        matches = await self.store.find_matches_on_date(descriptor.match_date)
        return _first_for_opposition(matches, descriptor.opposition)


def _first_for_opposition(matches: List[MatchRecord], opposition: str) -> Optional[MatchRecord]:
    for match in matches:
        if opposition_matches(opposition, match.away_team_name):
            return match
    return None


class MatchResolver:
    """
    Resolves SheetDescriptors to persisted MatchRecords.

    Example:
        >>> resolver = MatchResolver(store)
        >>> outcome = await resolver.resolve(descriptor)
        >>> outcome.strategy_name, outcome.value.match_id
        ('number_and_date', 12)
    """

    def __init__(self, store: StatisticsStore, strategies: Optional[Sequence[Strategy[MatchRecord]]] = None):
        if strategies is None:
            strategies = [
                NumberAndDateStrategy(store),
                NumberOnlyStrategy(store),
                NumberAndOppositionStrategy(store),
                DateAndOppositionStrategy(store),
            ]
        self.chain: StrategyChain[MatchRecord] = StrategyChain("match", strategies)

    async def resolve(self, descriptor: SheetDescriptor) -> StrategyOutcome[MatchRecord]:
        outcome = await self.chain.aresolve(descriptor)
        if outcome.found:
            logger.info(
                f"Sheet '{descriptor.sheet_name}' -> match {outcome.value.match_id} "
                f"(#{outcome.value.match_number} vs {outcome.value.away_team_name}, {outcome.strategy_name})"
            )
        else:
            logger.warning(f"No persisted match for '{descriptor.sheet_name}' ({descriptor.describe()})")
        return outcome
