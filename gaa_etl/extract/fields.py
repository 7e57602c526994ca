"""
Enumerated manifest of the player statistics columns.

Each member carries the header key produced by HeaderMapper (after duplicate
disambiguation), the kind of value it holds and the block it belongs to. The
attribute on PlayerStatistics is the lower-cased member name; the manifest is
checked against the dataclass at import time so a renamed or missing field
fails immediately rather than loading as a silent default.
"""

from dataclasses import fields as dataclass_fields
from enum import Enum
from typing import List, Tuple

from gaa_etl.models import PlayerStatistics


class FieldKind(Enum):
    IDENTIFIER = "identifier"
    COUNT = "count"
    RATIO = "ratio"
    TEXT = "text"


class FieldGroup(Enum):
    SUMMARY = "Summary"
    POSSESSION = "Possession Play"
    KICKOUTS_OWN = "Kickout Analysis - Drum"
    KICKOUTS_OPPOSITION = "Kickout Analysis - Opposition"
    ATTACKING = "Attacking Play"
    SHOTS_FROM_PLAY = "Shots from Play"
    SCOREABLE_FREES = "Scoreable Frees"
    TOTAL_SHOTS = "Total Shots"
    ASSISTS = "Assists"
    TACKLES = "Tackles"
    FREES_CONCEDED = "Frees Conceded"
    FREES_50M = "50m Free Conceded"
    BOOKINGS = "Bookings"
    THROW_UP = "Throw Up"
    GOALKEEPER = "Goalkeeper Stats"


_ID, _CNT, _PCT, _TXT = FieldKind.IDENTIFIER, FieldKind.COUNT, FieldKind.RATIO, FieldKind.TEXT
_G = FieldGroup


class PlayerField(Enum):
    """Known player statistics columns, in sheet order."""

    JERSEY_NUMBER = ("#", _ID, _G.SUMMARY)
    PLAYER_NAME = ("Player Name", _ID, _G.SUMMARY)
    MINUTES_PLAYED = ("Min", _CNT, _G.SUMMARY)
    TOTAL_ENGAGEMENTS = ("TE", _CNT, _G.SUMMARY)
    TE_PER_PSR = ("TE/PSR", _PCT, _G.SUMMARY)
    SCORES = ("Scores", _TXT, _G.SUMMARY)
    PSR = ("PSR", _CNT, _G.SUMMARY)
    PSR_PER_TP = ("PSR/TP", _PCT, _G.SUMMARY)

    TP = ("TP", _CNT, _G.POSSESSION)
    TOW = ("ToW", _CNT, _G.POSSESSION)
    INTERCEPTIONS = ("Int", _CNT, _G.POSSESSION)
    TPL = ("TPL", _CNT, _G.POSSESSION)
    KP = ("KP", _CNT, _G.POSSESSION)
    HP = ("HP", _CNT, _G.POSSESSION)
    HA = ("Ha", _CNT, _G.POSSESSION)
    TURNOVERS = ("TO", _CNT, _G.POSSESSION)
    INEFFECTIVE = ("In", _CNT, _G.POSSESSION)
    SHOT_SHORT = ("SS", _CNT, _G.POSSESSION)
    SHOT_SAVE = ("S Save", _CNT, _G.POSSESSION)
    FOULED = ("Fo", _CNT, _G.POSSESSION)
    WOODWORK = ("Ww", _CNT, _G.POSSESSION)

    KO_DRUM_KOW = ("KoW", _CNT, _G.KICKOUTS_OWN)
    KO_DRUM_WC = ("WC", _CNT, _G.KICKOUTS_OWN)
    KO_DRUM_BW = ("BW", _CNT, _G.KICKOUTS_OWN)
    KO_DRUM_SW = ("SW", _CNT, _G.KICKOUTS_OWN)

    KO_OPP_KOW = ("KoW_Opp", _CNT, _G.KICKOUTS_OPPOSITION)
    KO_OPP_WC = ("WC_Opp", _CNT, _G.KICKOUTS_OPPOSITION)
    KO_OPP_BW = ("BW_Opp", _CNT, _G.KICKOUTS_OPPOSITION)
    KO_OPP_SW = ("SW_Opp", _CNT, _G.KICKOUTS_OPPOSITION)

    TA = ("TA", _CNT, _G.ATTACKING)
    KR = ("KR", _CNT, _G.ATTACKING)
    KL = ("KL", _CNT, _G.ATTACKING)
    CR = ("CR", _CNT, _G.ATTACKING)
    CL = ("CL", _CNT, _G.ATTACKING)

    SHOTS_PLAY_TOTAL = ("Tot", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_POINTS = ("Pts", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_2POINTS = ("2 Pts", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_GOALS = ("Gls", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_WIDE = ("Wid", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_SHORT = ("Sh", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_SAVE = ("Save", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_WOODWORK = ("Ww_Shots", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_BLOCKED = ("Bd", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_45 = ("45", _CNT, _G.SHOTS_FROM_PLAY)
    SHOTS_PLAY_PERCENTAGE = ("%", _PCT, _G.SHOTS_FROM_PLAY)

    FREES_TOTAL = ("Tot_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_POINTS = ("Pts_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_2POINTS = ("2 Pts_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_GOALS = ("Gls_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_WIDE = ("Wid_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_SHORT = ("Sh_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_SAVE = ("Save_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_WOODWORK = ("Ww_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_45 = ("45_Frees", _CNT, _G.SCOREABLE_FREES)
    FREES_QF = ("QF", _CNT, _G.SCOREABLE_FREES)
    FREES_PERCENTAGE = ("%_Frees", _PCT, _G.SCOREABLE_FREES)

    TOTAL_SHOTS = ("TS", _CNT, _G.TOTAL_SHOTS)
    TOTAL_SHOTS_PERCENTAGE = ("%_Total", _PCT, _G.TOTAL_SHOTS)

    ASSISTS_TOTAL = ("TA_Assists", _CNT, _G.ASSISTS)
    ASSISTS_POINT = ("Point", _CNT, _G.ASSISTS)
    ASSISTS_GOAL = ("Goal", _CNT, _G.ASSISTS)

    TACKLES_TOTAL = ("Tot_Tackles", _CNT, _G.TACKLES)
    TACKLES_CONTESTED = ("Con", _CNT, _G.TACKLES)
    TACKLES_MISSED = ("Mis", _CNT, _G.TACKLES)
    TACKLES_PERCENTAGE = ("%_Tackles", _PCT, _G.TACKLES)

    FREES_CONCEDED_TOTAL = ("Tot_FC", _CNT, _G.FREES_CONCEDED)
    FREES_CONCEDED_ATTACK = ("Att", _CNT, _G.FREES_CONCEDED)
    FREES_CONCEDED_MIDFIELD = ("Mid", _CNT, _G.FREES_CONCEDED)
    FREES_CONCEDED_DEFENSE = ("Def", _CNT, _G.FREES_CONCEDED)
    FREES_CONCEDED_PENALTY = ("Pen", _CNT, _G.FREES_CONCEDED)

    FREES_50M_TOTAL = ("Tot_50m", _CNT, _G.FREES_50M)
    FREES_50M_DELAY = ("Delay", _CNT, _G.FREES_50M)
    FREES_50M_DISSENT = ("Diss", _CNT, _G.FREES_50M)
    FREES_50M_3V3 = ("3v3", _CNT, _G.FREES_50M)

    YELLOW_CARDS = ("Yel", _CNT, _G.BOOKINGS)
    BLACK_CARDS = ("Bla", _CNT, _G.BOOKINGS)
    RED_CARDS = ("Red", _CNT, _G.BOOKINGS)

    THROW_UP_WON = ("Won", _CNT, _G.THROW_UP)
    THROW_UP_LOST = ("Los", _CNT, _G.THROW_UP)

    GK_TOTAL_KICKOUTS = ("TKo", _CNT, _G.GOALKEEPER)
    GK_KICKOUT_RETAINED = ("KoR", _CNT, _G.GOALKEEPER)
    GK_KICKOUT_LOST = ("KoL", _CNT, _G.GOALKEEPER)
    GK_KICKOUT_PERCENTAGE = ("%_GK", _PCT, _G.GOALKEEPER)
    GK_SAVES = ("Saves", _CNT, _G.GOALKEEPER)

    def __init__(self, header: str, kind: FieldKind, group: FieldGroup):
        self.header = header
        self.kind = kind
        self.group = group

    @property
    def attribute(self) -> str:
        return self.name.lower()


EXPECTED_FIELD_COUNT = len(PlayerField)
CRITICAL_FIELDS: Tuple[PlayerField, ...] = (
    PlayerField.JERSEY_NUMBER,
    PlayerField.PLAYER_NAME,
    PlayerField.MINUTES_PLAYED,
)

COUNT_FIELDS: List[PlayerField] = [f for f in PlayerField if f.kind is FieldKind.COUNT]
RATIO_FIELDS: List[PlayerField] = [f for f in PlayerField if f.kind is FieldKind.RATIO]
STATISTIC_FIELDS: List[PlayerField] = [f for f in PlayerField if f.kind is not FieldKind.IDENTIFIER]


def expected_headers() -> List[str]:
    """Header keys in sheet order."""
    return [f.header for f in PlayerField]


def check_manifest() -> None:
    """Verify every manifest member maps onto a PlayerStatistics attribute."""
    attributes = {f.name for f in dataclass_fields(PlayerStatistics)}
    missing = [f.attribute for f in PlayerField if f.attribute not in attributes]
    if missing:
        raise RuntimeError(f"PlayerStatistics lacks manifest attributes: {missing}")


check_manifest()
