"""
Entry endpoints: cached totals, rosters and per-player score explanations.

These are read-only views over what the importer and recalculator wrote.
The entry total comes from the cached column; per-player totals are
computed on the fly so the breakdown always matches the current stats.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database.connection import get_db
from ...database.models import Entry, EntryPlayer, Player, Team
from ...roster import RosterPlayer, sort_roster_by_slot, validate_roster
from ...rounds import format_round_label_short, sort_round_labels
from ...scoring.engine import normalize_points
from ...scoring.recalculate import effective_player_totals, player_points_by_game
from ..schemas import (
    BreakdownItemResponse,
    EntryResponse,
    GamePointsResponse,
    PlayerStatsResponse,
    RosterPlayerResponse,
)

router = APIRouter()


def _game_label(game) -> str:
    if game.round:
        return game.round
    return f"Week {game.week}" if game.week is not None else "Unknown"


def _get_entry(db: Session, entry_id: int) -> Entry:
    entry = db.get(Entry, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(entry_id: int, db: Session = Depends(get_db)):
    """Entry with its cached total, roster in slot order and any roster problems."""
    entry = _get_entry(db, entry_id)

    rows = (
        db.query(EntryPlayer, Player, Team)
        .join(Player, EntryPlayer.player_id == Player.id)
        .join(Team, Player.team_id == Team.id)
        .filter(EntryPlayer.entry_id == entry.id)
        .all()
    )
    totals = effective_player_totals(db)

    roster = sort_roster_by_slot(
        [
            RosterPlayerResponse(
                slot=slot.slot,
                player_id=player.id,
                name=player.name,
                position=player.position,
                team=team.abbreviation,
                team_seed=team.seed,
                team_alive=bool(team.made_playoffs) and team.eliminated_round is None,
                locked=bool(slot.locked),
                total_points=round(totals.get(player.id, 0.0), 2),
            )
            for slot, player, team in rows
        ]
    )
    validation = validate_roster(
        [RosterPlayer(player.id, player.position, player.team_id, slot.slot) for slot, player, _ in rows]
    )

    return EntryResponse(
        id=entry.id,
        team_name=entry.team_name,
        participant_name=entry.participant_name,
        paid=entry.paid,
        total_points=normalize_points(entry.total_points_cached),
        roster=roster,
        roster_errors=validation.errors,
    )


@router.get("/{entry_id}/player-stats", response_model=PlayerStatsResponse)
async def get_entry_player_stats(
    entry_id: int,
    player_id: int = Query(..., description="Rostered player to explain"),
    db: Session = Depends(get_db),
):
    """Per-game scoring breakdown for one player on the entry's roster."""
    entry = _get_entry(db, entry_id)

    on_roster = (
        db.query(EntryPlayer)
        .filter(EntryPlayer.entry_id == entry.id, EntryPlayer.player_id == player_id)
        .one_or_none()
    )
    if on_roster is None:
        raise HTTPException(status_code=404, detail="Player is not on this entry's roster")

    player = db.get(Player, player_id)
    games = player_points_by_game(db, player)
    computed = sum(game.breakdown.total_points for game in games)
    override = player.playoff_override_points
    labels = {game.game_id: _game_label(game) for game in games}

    return PlayerStatsResponse(
        player_id=player.id,
        name=player.name,
        position=player.position,
        team=player.team.abbreviation if player.team else None,
        playoff_override_points=override,
        computed_points=round(computed, 2),
        total_points=round(normalize_points(override) if override is not None else computed, 2),
        rounds=sort_round_labels(list(labels.values())),
        games=[
            GamePointsResponse(
                stat_id=game.stat_id,
                game_id=game.game_id,
                round=game.round,
                week=game.week,
                label=labels[game.game_id],
                short_label=format_round_label_short(labels[game.game_id]),
                kickoff_at=game.kickoff_at,
                total_points=game.breakdown.total_points,
                is_manual_override=game.breakdown.is_manual_override,
                breakdown=[
                    BreakdownItemResponse(label=item.label, stat=item.stat, points=item.points, unit=item.unit)
                    for item in game.breakdown.items
                ],
            )
            for game in games
        ],
    )
