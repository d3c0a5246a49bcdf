"""Playoff round vocabulary and week/round conversions.

Providers number the postseason differently:
- ESPN restarts week numbering at 1 for the postseason (seasontype=3)
- Sleeper keeps counting from the regular season (weeks 19-22)

Everything inside the pool speaks in round names; these helpers translate.
"""

import re
from enum import Enum


class PlayoffRound(str, Enum):
    """Postseason rounds, in the order they are played."""

    WILDCARD = "Wildcard"
    DIVISIONAL = "Divisional"
    CONFERENCE = "Conference"
    SUPER_BOWL = "SuperBowl"


class SeasonType(str, Enum):
    """Regular season or postseason."""

    REGULAR = "regular"
    POST = "post"


PLAYOFF_ORDER = [r.value for r in PlayoffRound]

_WEEK_LABEL = re.compile(r"week\s*(\d+)", re.IGNORECASE)


_ROUND_ALIASES = {
    "wildcard": PlayoffRound.WILDCARD,
    "wc": PlayoffRound.WILDCARD,
    "divisional": PlayoffRound.DIVISIONAL,
    "div": PlayoffRound.DIVISIONAL,
    "conference": PlayoffRound.CONFERENCE,
    "conf": PlayoffRound.CONFERENCE,
    "championship": PlayoffRound.CONFERENCE,
    "superbowl": PlayoffRound.SUPER_BOWL,
    "sb": PlayoffRound.SUPER_BOWL,
}


def parse_round(value: str) -> PlayoffRound:
    """Parse a round label, ignoring case, spaces and dashes ("wild-card", "Super Bowl").

    Raises ValueError for anything that is not a playoff round.
    """
    key = re.sub(r"[\s_-]+", "", value).lower()
    if key not in _ROUND_ALIASES:
        raise ValueError(f"Unknown playoff round: {value!r} (expected one of {', '.join(PLAYOFF_ORDER)})")
    return _ROUND_ALIASES[key]


def round_from_week(week: int) -> PlayoffRound:
    """Map a season-continuous postseason week (Sleeper style) to a round."""
    if week >= 22:
        return PlayoffRound.SUPER_BOWL
    if week == 21:
        return PlayoffRound.CONFERENCE
    if week == 20:
        return PlayoffRound.DIVISIONAL
    return PlayoffRound.WILDCARD


def playoff_week_for_round(playoff_round: PlayoffRound | str) -> int:
    """ESPN postseason week number for a round (Wildcard=1 ... SuperBowl=4)."""
    return PLAYOFF_ORDER.index(PlayoffRound(playoff_round).value) + 1


def _parse_week(label: str) -> int | None:
    match = _WEEK_LABEL.search(label)
    return int(match.group(1)) if match else None


def _round_label_key(label: str) -> tuple:
    week = _parse_week(label)
    if week is not None:
        return (0, week, label)
    if label in PLAYOFF_ORDER:
        return (1, PLAYOFF_ORDER.index(label), label)
    return (2, 0, label)


def sort_round_labels(labels: list[str]) -> list[str]:
    """Sort mixed labels: "Week N" by number, then playoff rounds, then the rest."""
    return sorted(set(labels), key=_round_label_key)


def format_round_label_short(label: str) -> str:
    """Compact column header: "Week 7" -> "WK7", "Divisional" -> "DIV"."""
    week = _parse_week(label)
    if week is not None:
        return f"WK{week}"
    return label[:3].upper()
