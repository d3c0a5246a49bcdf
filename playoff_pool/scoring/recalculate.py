"""Rebuild every entry's cached point total from persisted stats.

The cached total on an entry is derived data. This module throws it away and
recomputes it from scratch:

1. Score every PlayerGameStat row (per-game override aware)
2. Sum those points per player
3. Replace a player's sum with their season-level override when one is set
4. Sum the effective player totals over each entry's roster and store it

Each call reads the current persisted state, so running it twice in a row, or
right after another import, always lands on the same numbers. Nothing here
commits; the caller owns the transaction.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..database.models import Entry, EntryPlayer, Game, Player, PlayerGameStat
from .engine import ScoreBreakdown, compute_breakdown, compute_points, normalize_points

logger = logging.getLogger(__name__)


@dataclass
class GamePoints:
    """One game's contribution to a player's total, for explainability views."""

    stat_id: int
    game_id: int
    round: str | None
    week: int | None
    kickoff_at: object
    breakdown: ScoreBreakdown


def _points_by_player(session: Session) -> dict[int, float]:
    totals: dict[int, float] = defaultdict(float)
    for row in session.query(PlayerGameStat).all():
        totals[row.player_id] += compute_points(row)
    return totals


def _player_overrides(session: Session) -> dict[int, float]:
    rows = (
        session.query(Player.id, Player.playoff_override_points)
        .filter(Player.playoff_override_points.isnot(None))
        .all()
    )
    return {player_id: normalize_points(value) for player_id, value in rows}


def player_effective_total(
    player_id: int,
    game_points: dict[int, float],
    overrides: dict[int, float],
) -> float:
    """A player's season total: the override when set, else summed game points."""
    if player_id in overrides:
        return overrides[player_id]
    return game_points.get(player_id, 0.0)


def effective_player_totals(session: Session) -> dict[int, float]:
    """Effective season total for every player with stats or an override."""
    session.flush()
    game_points = _points_by_player(session)
    overrides = _player_overrides(session)
    return {
        player_id: player_effective_total(player_id, game_points, overrides)
        for player_id in set(game_points) | set(overrides)
    }


def recalculate_entry_totals(session: Session) -> dict[int, float]:
    """Recompute and store total_points_cached for every entry.

    Returns the new totals keyed by entry id. Entries with an empty roster
    get 0.
    """
    # Column queries below must see unflushed overrides
    session.flush()
    game_points = _points_by_player(session)
    overrides = _player_overrides(session)

    rosters: dict[int, list[int]] = defaultdict(list)
    for entry_id, player_id in session.query(EntryPlayer.entry_id, EntryPlayer.player_id).all():
        rosters[entry_id].append(player_id)

    totals: dict[int, float] = {}
    for entry in session.query(Entry).all():
        total = sum(
            player_effective_total(player_id, game_points, overrides)
            for player_id in rosters.get(entry.id, [])
        )
        entry.total_points_cached = round(total, 2)
        totals[entry.id] = entry.total_points_cached

    session.flush()
    logger.info(f"Recalculated totals for {len(totals)} entries")
    return totals


def player_points_by_game(session: Session, player: Player) -> list[GamePoints]:
    """Per-game breakdowns for one player, ordered by kickoff."""
    rows = (
        session.query(PlayerGameStat, Game)
        .join(Game, PlayerGameStat.game_id == Game.id)
        .filter(PlayerGameStat.player_id == player.id)
        .order_by(Game.kickoff_at, Game.id)
        .all()
    )
    return [
        GamePoints(
            stat_id=stat.id,
            game_id=game.id,
            round=game.round,
            week=game.week,
            kickoff_at=game.kickoff_at,
            breakdown=compute_breakdown(stat),
        )
        for stat, game in rows
    ]
