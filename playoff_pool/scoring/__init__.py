"""Fantasy scoring: the fixed rule sheet and the entry total recalculation."""

from .engine import (
    SCORING_RULES,
    BreakdownItem,
    ScoreBreakdown,
    ScoringRule,
    compute_breakdown,
    compute_points,
    normalize_points,
    rules_table,
)
from .recalculate import (
    GamePoints,
    effective_player_totals,
    player_effective_total,
    player_points_by_game,
    recalculate_entry_totals,
)

__all__ = [
    "SCORING_RULES",
    "BreakdownItem",
    "GamePoints",
    "ScoreBreakdown",
    "ScoringRule",
    "compute_breakdown",
    "compute_points",
    "effective_player_totals",
    "normalize_points",
    "player_effective_total",
    "player_points_by_game",
    "recalculate_entry_totals",
    "rules_table",
]
