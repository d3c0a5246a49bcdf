"""Roster slot vocabulary and roster validation.

Every entry drafts exactly 14 players, one per NFL playoff team:

    QB1-QB4, RB1-RB3, WR1-WR3, FLEX (RB/WR/TE), TE, K, DST
"""

from dataclasses import dataclass, field
from enum import Enum


class Position(str, Enum):
    """Fantasy positions a player can be drafted at."""

    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    K = "K"
    DST = "DST"


class EntrySlot(str, Enum):
    """Roster slot labels in display order."""

    QB1 = "QB1"
    QB2 = "QB2"
    QB3 = "QB3"
    QB4 = "QB4"
    RB1 = "RB1"
    RB2 = "RB2"
    RB3 = "RB3"
    WR1 = "WR1"
    WR2 = "WR2"
    WR3 = "WR3"
    FLEX = "FLEX"
    TE = "TE"
    K = "K"
    DST = "DST"


SLOT_ORDER = [slot.value for slot in EntrySlot]
ROSTER_SIZE = len(SLOT_ORDER)

POSITION_COUNTS = {"QB": 4, "RB": 3, "WR": 3, "TE": 1, "K": 1, "DST": 1, "FLEX": 1}
FLEX_POSITIONS = {"RB", "WR", "TE"}


@dataclass
class RosterPlayer:
    """Minimal view of a drafted player for validation."""

    player_id: int
    position: str
    team_id: int
    slot: str | None = None


@dataclass
class RosterValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)


def validate_roster(players: list[RosterPlayer]) -> RosterValidation:
    """Check roster size, uniqueness, one-player-per-team and position counts."""
    errors = []

    if len(players) != ROSTER_SIZE:
        errors.append(f"Roster must include exactly {ROSTER_SIZE} players.")

    player_ids = [p.player_id for p in players]
    if len(set(player_ids)) != len(player_ids):
        errors.append("Roster cannot contain duplicate players.")

    team_ids = [p.team_id for p in players]
    if len(set(team_ids)) != len(team_ids):
        errors.append("Only one player per NFL playoff team is allowed.")

    counts = {position.value: 0 for position in Position}
    for player in players:
        if player.position in counts:
            counts[player.position] += 1

    if counts["QB"] != POSITION_COUNTS["QB"]:
        errors.append("Exactly 4 quarterbacks are required.")
    if counts["RB"] < POSITION_COUNTS["RB"]:
        errors.append("At least 3 running backs are required.")
    if counts["WR"] < POSITION_COUNTS["WR"]:
        errors.append("At least 3 wide receivers are required.")
    if counts["TE"] < POSITION_COUNTS["TE"]:
        errors.append("At least 1 tight end is required.")
    if counts["K"] != POSITION_COUNTS["K"]:
        errors.append("Exactly 1 kicker is required.")
    if counts["DST"] != POSITION_COUNTS["DST"]:
        errors.append("Exactly 1 defense is required.")

    # RB + WR + TE slots plus the FLEX must all come from flex-eligible players
    flex_eligible = sum(1 for p in players if p.position in FLEX_POSITIONS)
    needed = (
        POSITION_COUNTS["RB"]
        + POSITION_COUNTS["WR"]
        + POSITION_COUNTS["TE"]
        + POSITION_COUNTS["FLEX"]
    )
    if flex_eligible < needed:
        errors.append("Flex slot must be filled by an RB, WR, or TE.")

    return RosterValidation(valid=not errors, errors=errors)


def sort_roster_by_slot(roster: list, slot_attr: str = "slot") -> list:
    """Return roster items ordered QB1..DST; unknown slots go last."""
    order = {slot: index for index, slot in enumerate(SLOT_ORDER)}

    def key(item):
        slot = item.get(slot_attr) if isinstance(item, dict) else getattr(item, slot_attr, None)
        slot = slot.value if isinstance(slot, Enum) else slot
        return order.get(slot, len(order))

    return sorted(roster, key=key)


# Position codes providers use for players we never draft (OL, LB, ...).
# Records carrying them are valid input; they simply never resolve.
OTHER_POSITIONS = {
    "OL", "OT", "OG", "G", "T", "C", "LS", "P",
    "DL", "DE", "DT", "NT", "LB", "ILB", "OLB", "MLB",
    "DB", "CB", "S", "SS", "FS", "FB", "KR", "PR", "ATH",
}
KNOWN_POSITIONS = {position.value for position in Position} | OTHER_POSITIONS

_POSITION_ALIASES = {"DEF": "DST", "D/ST": "DST", "D": "DST", "PK": "K"}


def normalize_position(value: str | None) -> str | None:
    """Uppercase a provider position code and fold its aliases (DEF -> DST, PK -> K)."""
    if value is None:
        return None
    code = value.strip().upper()
    if not code:
        return None
    return _POSITION_ALIASES.get(code, code)
