"""
Position enrichment.

Each player's position comes from an ordered strategy chain:
1. Roster mapping lookup on the normalised name
2. Goalkeeper inference from kickout or save counts
Players left unresolved keep an unset position and get a warning; they are
excluded later by the loader, never dropped here.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from gaa_etl.models import PlayerStatistics, PositionMapping
from gaa_etl.strategies import Strategy, StrategyChain
from gaa_etl.transform.cleaners import normalize_player_name
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

POSITION_CODES = ("GK", "DEF", "MID", "FWD")


class MappingLookupStrategy(Strategy[str]):
    name = "position_mapping"

    def attempt(self, record: PlayerStatistics, mapping: PositionMapping) -> Optional[str]:
        return mapping.get(normalize_player_name(record.player_name))


class GoalkeeperInferenceStrategy(Strategy[str]):
    name = "goalkeeper_inference"

    def attempt(self, record: PlayerStatistics, mapping: PositionMapping) -> Optional[str]:
        return "GK" if record.has_goalkeeper_indicators else None


@dataclass
class EnrichmentSummary:
    """How many players each strategy resolved, plus the unresolved ones."""

    resolved_by: Dict[str, int] = field(default_factory=dict)
    unresolved: List[str] = field(default_factory=list)

    @property
    def resolved_count(self) -> int:
        return sum(self.resolved_by.values())


class PositionEnricher:
    """
    Annotates PlayerStatistics records with position codes.

    Example:
        >>> enricher = PositionEnricher(roster.mapping)
        >>> summary = enricher.enrich(records, outcome)
        >>> summary.resolved_by
        {'position_mapping': 18, 'goalkeeper_inference': 1}
    """

    def __init__(self, mapping: PositionMapping, strategies: Optional[Sequence[Strategy[str]]] = None):
        self.mapping = mapping
        if strategies is None:
            strategies = [MappingLookupStrategy(), GoalkeeperInferenceStrategy()]
        self.chain: StrategyChain[str] = StrategyChain("position", strategies)

    def enrich(self, records: List[PlayerStatistics], outcome: Optional[ValidationOutcome] = None) -> EnrichmentSummary:
        """Set position_code on every record; unresolved players are warned about."""
        counts: Counter = Counter()
        summary = EnrichmentSummary()

        for record in records:
            result = self.chain.resolve(record, self.mapping)
            if result.found:
                record.position_code = result.value
                counts[result.strategy_name] += 1
                continue

            record.position_code = None
            summary.unresolved.append(record.player_name)
            message = (
                f"No position for #{record.jersey_number} {record.player_name}: "
                "not in position sheets and no goalkeeper statistics; excluded from load"
            )
            logger.warning(message)
            if outcome is not None:
                outcome.add_warning(Category.POSITION, message, row=record.source_row,
                                    value=record.player_name)

        summary.resolved_by = dict(counts)
        logger.info(
            f"Positions resolved for {summary.resolved_count}/{len(records)} players "
            f"({summary.resolved_by}), {len(summary.unresolved)} unresolved"
        )
        return summary
