"""
Transient data model shared by the extract, validate, transform and load stages.

- SheetDescriptor: per-worksheet metadata plus the resolved field map
- PlayerStatistics / TeamStatistics: flat, typed statistic records
- MatchSheetData: one match/team sheet (scores plus six period records)
- KpiDefinition: one row of the KPI definitions sheet
- MatchRecord / PlayerRecord / KpiRecord: persisted rows returned by the storage layer
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class _DateUnknown:
    """Sentinel for a match date that could not be recovered from a sheet."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "DATE_UNKNOWN"

    def __reduce__(self):
        return (_DateUnknown, ())


DATE_UNKNOWN = _DateUnknown()

MatchDate = Union[date, _DateUnknown]

# Normalised player name -> position code, read-only for one run
PositionMapping = Mapping[str, str]


class SheetKind(Enum):
    """Worksheet classification tags."""

    PLAYER_STATS = "PlayerStats"
    MATCH_STATS = "MatchStats"
    KPI_DEFINITIONS = "KpiDefinitions"
    OTHER = "Other"


@dataclass(frozen=True)
class SheetDescriptor:
    """Metadata for one worksheet, built once per scan."""

    sheet_name: str
    kind: SheetKind
    match_number: int
    opposition: str
    match_date: MatchDate = DATE_UNKNOWN
    competition: Optional[str] = None
    metadata_source: Optional[str] = None
    field_map: Optional[Any] = None

    @property
    def date_known(self) -> bool:
        return self.match_date is not DATE_UNKNOWN

    def describe(self) -> str:
        when = self.match_date.isoformat() if self.date_known else "date unknown"
        return f"#{self.match_number} vs {self.opposition} ({when})"


@dataclass
class PlayerStatistics:
    """One player's row from a player statistics sheet."""

    jersey_number: int
    player_name: str
    source_row: int = 0
    position_code: Optional[str] = None

    # Summary
    minutes_played: int = 0
    total_engagements: int = 0
    te_per_psr: Optional[float] = None
    scores: Optional[str] = None
    psr: int = 0
    psr_per_tp: Optional[float] = None

    # Possession play
    tp: int = 0
    tow: int = 0
    interceptions: int = 0
    tpl: int = 0
    kp: int = 0
    hp: int = 0
    ha: int = 0
    turnovers: int = 0
    ineffective: int = 0
    shot_short: int = 0
    shot_save: int = 0
    fouled: int = 0
    woodwork: int = 0

    # Kickouts won on own and opposition restarts
    ko_drum_kow: int = 0
    ko_drum_wc: int = 0
    ko_drum_bw: int = 0
    ko_drum_sw: int = 0
    ko_opp_kow: int = 0
    ko_opp_wc: int = 0
    ko_opp_bw: int = 0
    ko_opp_sw: int = 0

    # Attacking play
    ta: int = 0
    kr: int = 0
    kl: int = 0
    cr: int = 0
    cl: int = 0

    # Shots from play
    shots_play_total: int = 0
    shots_play_points: int = 0
    shots_play_2points: int = 0
    shots_play_goals: int = 0
    shots_play_wide: int = 0
    shots_play_short: int = 0
    shots_play_save: int = 0
    shots_play_woodwork: int = 0
    shots_play_blocked: int = 0
    shots_play_45: int = 0
    shots_play_percentage: Optional[float] = None

    # Scoreable frees
    frees_total: int = 0
    frees_points: int = 0
    frees_2points: int = 0
    frees_goals: int = 0
    frees_wide: int = 0
    frees_short: int = 0
    frees_save: int = 0
    frees_woodwork: int = 0
    frees_45: int = 0
    frees_qf: int = 0
    frees_percentage: Optional[float] = None

    # Total shots
    total_shots: int = 0
    total_shots_percentage: Optional[float] = None

    # Assists
    assists_total: int = 0
    assists_point: int = 0
    assists_goal: int = 0

    # Tackles
    tackles_total: int = 0
    tackles_contested: int = 0
    tackles_missed: int = 0
    tackles_percentage: Optional[float] = None

    # Frees conceded
    frees_conceded_total: int = 0
    frees_conceded_attack: int = 0
    frees_conceded_midfield: int = 0
    frees_conceded_defense: int = 0
    frees_conceded_penalty: int = 0

    # 50m frees conceded
    frees_50m_total: int = 0
    frees_50m_delay: int = 0
    frees_50m_dissent: int = 0
    frees_50m_3v3: int = 0

    # Bookings
    yellow_cards: int = 0
    black_cards: int = 0
    red_cards: int = 0

    # Throw-up
    throw_up_won: int = 0
    throw_up_lost: int = 0

    # Goalkeeper
    gk_total_kickouts: int = 0
    gk_kickout_retained: int = 0
    gk_kickout_lost: int = 0
    gk_kickout_percentage: Optional[float] = None
    gk_saves: int = 0

    @property
    def total_cards(self) -> int:
        return self.yellow_cards + self.black_cards + self.red_cards

    @property
    def has_goalkeeper_indicators(self) -> bool:
        return self.gk_total_kickouts > 0 or self.gk_saves > 0


@dataclass
class TeamStatistics:
    """Team figures for one period (1st, 2nd or Full) of a match."""

    team_name: str
    period: str
    scoreline: Optional[str] = None
    total_possession: Optional[float] = None

    score_source_kickout_long: int = 0
    score_source_kickout_short: int = 0
    score_source_opp_kickout_long: int = 0
    score_source_opp_kickout_short: int = 0
    score_source_turnover: int = 0
    score_source_possession_lost: int = 0
    score_source_shot_short: int = 0
    score_source_throw_up_in: int = 0

    shot_source_kickout_long: int = 0
    shot_source_kickout_short: int = 0
    shot_source_opp_kickout_long: int = 0
    shot_source_opp_kickout_short: int = 0
    shot_source_turnover: int = 0
    shot_source_possession_lost: int = 0
    shot_source_shot_short: int = 0
    shot_source_throw_up_in: int = 0

    def source_counts(self) -> Dict[str, int]:
        """All score/shot source counters keyed by attribute name."""
        return {
            name: value for name, value in vars(self).items()
            if name.startswith(("score_source_", "shot_source_"))
        }


@dataclass
class MatchSheetData:
    """One match/team sheet: metadata, six scorelines and six period records."""

    sheet_name: str
    match_number: int
    competition: str
    opposition: str
    match_date: MatchDate
    venue: str = "Home"
    home_score_first_half: Optional[str] = None
    home_score_second_half: Optional[str] = None
    home_score_full_time: Optional[str] = None
    away_score_first_half: Optional[str] = None
    away_score_second_half: Optional[str] = None
    away_score_full_time: Optional[str] = None
    team_statistics: List[TeamStatistics] = field(default_factory=list)

    def scorelines(self) -> Dict[str, Optional[str]]:
        return {
            "home_score_first_half": self.home_score_first_half,
            "home_score_second_half": self.home_score_second_half,
            "home_score_full_time": self.home_score_full_time,
            "away_score_first_half": self.away_score_first_half,
            "away_score_second_half": self.away_score_second_half,
            "away_score_full_time": self.away_score_full_time,
        }


@dataclass(frozen=True)
class MatchRecord:
    """A persisted match as seen by the resolver."""

    match_id: int
    match_number: int
    match_date: date
    competition_id: int
    home_team_name: str
    away_team_name: str


@dataclass(frozen=True)
class PlayerRecord:
    """A persisted roster entry."""

    player_id: int
    jersey_number: int
    full_name: str
    first_name: str
    last_name: str
    position_code: str


@dataclass
class KpiDefinition:
    """One outcome row of the KPI definitions sheet."""

    event_number: int
    event_name: str
    outcome: str
    team_assignment: str
    psr_value: float = 0.0
    definition: str = ""
    source_row: int = 0

    @property
    def natural_key(self) -> Tuple[int, str, str, str]:
        """(event number, event name, outcome, team assignment), text compared case-insensitively."""
        return (self.event_number, self.event_name.lower(), self.outcome.lower(), self.team_assignment.lower())

    def describe(self) -> str:
        return f"Event {self.event_number} - {self.event_name} - {self.outcome} ({self.team_assignment})"


@dataclass(frozen=True)
class KpiRecord:
    """A persisted KPI definition."""

    kpi_id: int
    event_number: int
    event_name: str
    outcome: str
    team_assignment: str
    psr_value: float
    definition: str
