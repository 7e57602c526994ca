"""
Unit tests for gaa_etl/load/resolver.py
"""

import asyncio
from datetime import date

import pytest

from gaa_etl.load.memory import InMemoryStore
from gaa_etl.load.resolver import MatchResolver, opposition_matches
from gaa_etl.models import DATE_UNKNOWN, SheetDescriptor, SheetKind


def descriptor(match_number=9, opposition="Slaughtmanus", match_date=date(2025, 9, 26)):
    return SheetDescriptor("Player stats", SheetKind.PLAYER_STATS, match_number, opposition, match_date)


def resolve(store, desc):
    return asyncio.run(MatchResolver(store).resolve(desc))


class TestOppositionMatching:
    """Test token-boundary opposition comparison."""

    @pytest.mark.parametrize("opposition, team_name, expected", [
        ("Slaughtmanus", "Slaughtmanus", True),
        ("slaughtmanus", "Slaughtmanus", True),
        ("Slaughtmanu", "Slaughtmanus", True),
        ("Slaughtmanus GAC", "Slaughtmanus", True),
        ("Bellaghy", "Wolfe Tones Bellaghy", True),
        ("manus", "Slaughtmanus", False),
        ("Sl", "Slaughtmanus", False),
        ("Lavey", "Slaughtmanus", False),
        ("", "Slaughtmanus", False),
    ])
    def test_matches(self, opposition, team_name, expected):
        assert opposition_matches(opposition, team_name) is expected


class TestMatchResolver:
    """Test the resolution tiers and their order."""

    def test_number_and_date_wins_over_opposition(self):
        store = InMemoryStore()
        store.add_match(9, date(2024, 9, 20), "Slaughtmanus")
        expected = store.add_match(9, date(2025, 9, 26), "Ballinascreen")

        outcome = resolve(store, descriptor())

        # Opposition tiers would pick the 2024 match
        assert outcome.strategy_name == "number_and_date"
        assert outcome.value == expected

    def test_number_only_when_unique(self):
        store = InMemoryStore()
        expected = store.add_match(9, date(2025, 9, 26), "Slaughtmanus")

        outcome = resolve(store, descriptor(match_date=DATE_UNKNOWN))
        assert outcome.strategy_name == "number_only"
        assert outcome.value == expected

    def test_dated_sheet_ignores_other_season_with_same_number(self):
        store = InMemoryStore()
        store.add_match(9, date(2024, 9, 20), "Lavey")

        outcome = resolve(store, descriptor())
        assert not outcome.found

    def test_dated_sheet_with_number_and_opposition(self):
        store = InMemoryStore()
        expected = store.add_match(9, date(2025, 9, 27), "Slaughtmanus")

        # Date typo on the sheet; number and opposition still agree
        outcome = resolve(store, descriptor())
        assert outcome.strategy_name == "number_and_opposition"
        assert outcome.value == expected

    def test_ambiguous_number_falls_through_to_opposition(self):
        store = InMemoryStore()
        store.add_match(9, date(2025, 9, 26), "Lavey")
        expected = store.add_match(9, date(2024, 9, 20), "Slaughtmanus")

        outcome = resolve(store, descriptor(opposition="Slaughtmanu", match_date=DATE_UNKNOWN))
        assert outcome.strategy_name == "number_and_opposition"
        assert outcome.value == expected

    def test_date_and_opposition(self):
        store = InMemoryStore()
        expected = store.add_match(12, date(2025, 9, 26), "Slaughtmanus")

        outcome = resolve(store, descriptor(match_number=9))
        assert outcome.strategy_name == "date_and_opposition"
        assert outcome.value == expected

    def test_not_found(self):
        store = InMemoryStore()
        store.add_match(3, date(2025, 5, 1), "Lavey")

        outcome = resolve(store, descriptor())
        assert not outcome.found
        assert outcome.strategy_name is None

    def test_unknown_date_skips_date_tiers(self):
        store = InMemoryStore()
        store.add_match(12, date(2025, 9, 26), "Slaughtmanus")

        outcome = resolve(store, descriptor(match_date=DATE_UNKNOWN))
        assert not outcome.found
