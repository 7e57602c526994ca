"""
Ordered first-successful-strategy chains.

A chain holds independent strategies and returns the result of the first one
that produces a value. Used for:
- Worksheet metadata (sheet name -> title cell -> truncated name)
- Player positions (roster mapping -> statistical inference)
- Persisted match lookup (number+date -> number -> number+opposition)

New fallback tiers are appended without touching the existing ones.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StrategyOutcome(Generic[T]):
    """Value produced by a chain and the name of the strategy that produced it."""

    value: Optional[T]
    strategy_name: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.value is not None


class Strategy(ABC, Generic[T]):
    """A single resolution tier. Returns None when it has nothing to offer."""

    name: str = "strategy"

    @abstractmethod
    def attempt(self, *args: Any, **kwargs: Any) -> Optional[T]:
        """Try to resolve a value; sync strategies return it, async ones return an awaitable."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class StrategyChain(Generic[T]):
    """
    Evaluates strategies in order and stops at the first present result.

    Example:
        >>> chain = StrategyChain("metadata", [FromSheetName(), FromTitleCell()])
        >>> outcome = chain.resolve(sheet)
        >>> if outcome.found:
        >>>     print(outcome.strategy_name, outcome.value)
    """

    def __init__(self, name: str, strategies: Optional[Sequence[Strategy[T]]] = None):
        self.name = name
        self.strategies: List[Strategy[T]] = list(strategies or [])

    def append(self, strategy: Strategy[T]) -> "StrategyChain[T]":
        """Add a lower-confidence tier at the end of the chain."""
        self.strategies.append(strategy)
        return self

    def resolve(self, *args: Any, **kwargs: Any) -> StrategyOutcome[T]:
        """Run synchronous strategies in order."""
        for strategy in self.strategies:
            value = strategy.attempt(*args, **kwargs)
            if value is not None:
                logger.debug(f"{self.name}: resolved by {strategy.name}")
                return StrategyOutcome(value=value, strategy_name=strategy.name)
        return StrategyOutcome(value=None)

    async def aresolve(self, *args: Any, **kwargs: Any) -> StrategyOutcome[T]:
        """Run strategies in order, awaiting those that return awaitables."""
        for strategy in self.strategies:
            value = strategy.attempt(*args, **kwargs)
            if inspect.isawaitable(value):
                value = await value
            if value is not None:
                logger.debug(f"{self.name}: resolved by {strategy.name}")
                return StrategyOutcome(value=value, strategy_name=strategy.name)
        return StrategyOutcome(value=None)

    def __len__(self) -> int:
        return len(self.strategies)
