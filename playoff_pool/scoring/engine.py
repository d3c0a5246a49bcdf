"""Fantasy point calculation for one player's stat line in one game.

The rule set is fixed (it is the same sheet published to participants):

    Passing      1 pt / 20 yds, 6 per TD, 2 per 2PT
    Rushing      1 pt / 10 yds, 6 per TD, 2 per 2PT
    Receiving    1 pt / 10 yds, 6 per TD, 2 per 2PT, 1 per reception
    Kicking      FG 0-39: 3, 40-49: 4, 50-59: 5, 60+: 6, XP: 1
    Defense/ST   fumble recovery 2, Def/ST TD 9, INT 2, sack 1, safety 2,
                 each 2pt return variant (Fum2PK, Fum2PT, Int2PK, Int2PT) 2

Yardage terms use floor division, so 19 passing yards are worth nothing and
20 are worth one point. There are no penalty terms: a negative yardage line
contributes zero and a total is never below zero.

A stat line is anything exposing the PlayerGameStat column names, either as
attributes (ORM rows) or as mapping keys (plain dicts in tests and API
payloads). Missing or None counting fields count as zero.

If the line carries a per-game manual override (manual_override_points is
not None), that value IS the score: the breakdown holds one "Manual
Override" item and nothing else is computed.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

OVERRIDE_FIELD = "manual_override_points"
OVERRIDE_LABEL = "Manual Override"


@dataclass(frozen=True)
class ScoringRule:
    """One line of the rule sheet.

    Points for the line are floor(stat / per) * points, so `per` is 1 for
    every counting stat and 10 or 20 for yardage.
    """

    category: str
    label: str
    column: str
    points: int
    unit: str
    per: int = 1

    def score(self, value: float) -> float:
        if self.per > 1:
            return max(0, math.floor(value / self.per)) * self.points
        return value * self.points

    @property
    def display_value(self) -> str:
        """Rule value as printed on the rules page ("1 / 20", "6")."""
        if self.per > 1:
            return f"{self.points} / {self.per}"
        return str(self.points)


SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule("Passing", "Passing Yards", "passing_yards", 1, "yds", per=20),
    ScoringRule("Passing", "Passing TD", "passing_tds", 6, "TD"),
    ScoringRule("Passing", "Passing 2PT", "passing_two_pt", 2, "2PT"),
    ScoringRule("Rushing", "Rushing Yards", "rushing_yards", 1, "yds", per=10),
    ScoringRule("Rushing", "Rushing TD", "rushing_tds", 6, "TD"),
    ScoringRule("Rushing", "Rushing 2PT", "rushing_two_pt", 2, "2PT"),
    ScoringRule("Receiving", "Receiving Yards", "receiving_yards", 1, "yds", per=10),
    ScoringRule("Receiving", "Receiving TD", "receiving_tds", 6, "TD"),
    ScoringRule("Receiving", "Receiving 2PT", "receiving_two_pt", 2, "2PT"),
    ScoringRule("Receiving", "Receptions", "receptions", 1, "rec"),
    ScoringRule("Kicking", "FG (0-39)", "fg_made_0_39", 3, "FG"),
    ScoringRule("Kicking", "FG (40-49)", "fg_made_40_49", 4, "FG"),
    ScoringRule("Kicking", "FG (50-59)", "fg_made_50_59", 5, "FG"),
    ScoringRule("Kicking", "FG (60+)", "fg_made_60_plus", 6, "FG"),
    ScoringRule("Kicking", "XP", "xp_made", 1, "XP"),
    ScoringRule("Defense/ST", "Fumble Recovery", "def_fumble_recoveries", 2, "FR"),
    ScoringRule("Defense/ST", "Def/ST TD", "def_st_tds", 9, "TD"),
    ScoringRule("Defense/ST", "Interception", "def_int", 2, "INT"),
    ScoringRule("Defense/ST", "Sack", "sacks", 1, "sack"),
    ScoringRule("Defense/ST", "Safety", "safeties", 2, "SAF"),
    ScoringRule("Defense/ST", "Fum2PK", "fum2pk", 2, "2PT"),
    ScoringRule("Defense/ST", "Fum2PT", "fum2pt", 2, "2PT"),
    ScoringRule("Defense/ST", "Int2PK", "int2pk", 2, "2PT"),
    ScoringRule("Defense/ST", "Int2PT", "int2pt", 2, "2PT"),
)


@dataclass(frozen=True)
class BreakdownItem:
    """One non-zero contribution to a game's score."""

    label: str
    stat: float
    points: float
    unit: str


@dataclass
class ScoreBreakdown:
    """Total points for a stat line plus the items that produced them."""

    total_points: float = 0.0
    items: list[BreakdownItem] = field(default_factory=list)
    is_manual_override: bool = False
    category_totals: dict[str, float] = field(default_factory=dict)


def normalize_points(value: Any) -> float:
    """Coerce a stored point or stat value to float.

    None, empty strings and anything unparsable become 0.0; numeric strings
    (as some databases return NUMERIC columns) are parsed.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0.0
        return parsed if math.isfinite(parsed) else 0.0
    return 0.0


def _read(line: Any, name: str) -> Any:
    if isinstance(line, Mapping):
        return line.get(name)
    return getattr(line, name, None)


def get_override(line: Any) -> float | None:
    """Per-game override on a stat line, or None when there is none.

    None (or an absent field) means "no override"; 0 is a real override.
    """
    value = _read(line, OVERRIDE_FIELD)
    if value is None:
        return None
    return normalize_points(value)


def compute_breakdown(line: Any) -> ScoreBreakdown:
    """Score a stat line and explain the result item by item."""
    override = get_override(line)
    if override is not None:
        return ScoreBreakdown(
            total_points=override,
            items=[BreakdownItem(OVERRIDE_LABEL, override, override, "pts")],
            is_manual_override=True,
        )

    breakdown = ScoreBreakdown()
    for rule in SCORING_RULES:
        stat = normalize_points(_read(line, rule.column))
        points = rule.score(stat)
        breakdown.category_totals[rule.category] = (
            breakdown.category_totals.get(rule.category, 0) + points
        )
        breakdown.total_points += points
        if stat and points:
            breakdown.items.append(BreakdownItem(rule.label, stat, points, rule.unit))

    return breakdown


def compute_points(line: Any) -> float:
    """Effective points for one stat line (per-game override aware)."""
    return compute_breakdown(line).total_points


def rules_table() -> list[dict[str, str]]:
    """The rule sheet as label/value pairs, grouped by category."""
    return [
        {"category": rule.category, "label": rule.label, "value": rule.display_value}
        for rule in SCORING_RULES
    ]
