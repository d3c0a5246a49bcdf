"""
Pydantic schemas for API request/response models.

This module defines the data structures the admin and entries endpoints
exchange, using Pydantic for validation and OpenAPI documentation.

Key Pydantic Concepts:
- BaseModel: Base class for all data models
- ConfigDict: Configuration options for model behavior
- model_validator: Cross-field checks ("playoff mode needs rounds")
- from_attributes: Allows creation from SQLAlchemy ORM objects

Stat batches are accepted as plain JSON objects and validated by the
importer itself, so a bad batch comes back as one 400 listing every
offending record instead of FastAPI's per-field 422.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..rounds import PlayoffRound, SeasonType

# ========== IMPORT SCHEMAS ==========


class StatBatchRequest(BaseModel):
    """A batch of canonical stat records (see playoff_pool.data.records)."""

    records: list[dict[str, Any]] = Field(default_factory=list)


class ImportResultResponse(BaseModel):
    """Counts reported after an import, replace or fetch."""

    success: bool = True
    source: str  # "json", "csv", "espn", "sleeper"
    message: str | None = None

    received: int
    imported: int
    skipped: int
    skipped_empty: int
    unmatched_players: int
    ambiguous_players: int
    unmatched_games: int
    duplicates: int
    games_created: int
    games_updated: int
    rows_deleted: int
    entries_recalculated: int


class ESPNFetchRequest(BaseModel):
    """Which ESPN rounds (playoff mode) or weeks (regular mode) to re-fetch."""

    season_year: int | None = None
    mode: Literal["playoff", "regular"] = "playoff"
    rounds: list[PlayoffRound] | None = None
    weeks: list[int] | None = None

    @model_validator(mode="after")
    def _check_selection(self):
        if self.mode == "playoff" and not self.rounds:
            raise ValueError("Playoff mode requires rounds")
        if self.mode == "regular":
            if not self.weeks:
                raise ValueError("Regular mode requires weeks")
            if any(week < 1 or week > 18 for week in self.weeks):
                raise ValueError("Regular-season weeks run from 1 to 18")
        return self


class SleeperFetchRequest(BaseModel):
    """Fetch the latest Sleeper week with stats, or one explicit week."""

    season_year: int | None = None
    week: int | None = Field(default=None, ge=1)
    season_type: SeasonType = SeasonType.POST
    replace: bool = False


class RecalculateResponse(BaseModel):
    entries_recalculated: int
    totals: dict[int, float]


# ========== OVERRIDE SCHEMAS ==========


class OverrideRequest(BaseModel):
    """Set an override (a number, 0 included) or clear it (null)."""

    points: float | None = None


class PlayerOverrideResponse(BaseModel):
    player_id: int
    playoff_override_points: float | None
    entries_recalculated: int


class StatOverrideResponse(BaseModel):
    stat_id: int
    player_id: int
    game_id: int
    manual_override_points: float | None
    entries_recalculated: int


# ========== SCORING SCHEMAS ==========


class RuleResponse(BaseModel):
    category: str
    label: str
    value: str


class BreakdownItemResponse(BaseModel):
    label: str
    stat: float
    points: float
    unit: str


class GamePointsResponse(BaseModel):
    """One game of a player's season with its explained score."""

    stat_id: int
    game_id: int
    round: str | None = None
    week: int | None = None
    label: str  # "Wildcard" or "Week 17"
    short_label: str  # "WIL", "WK17"
    kickoff_at: datetime | None = None
    total_points: float
    is_manual_override: bool
    breakdown: list[BreakdownItemResponse]


class PlayerStatsResponse(BaseModel):
    """A rostered player's per-game scoring, as shown from an entry page."""

    player_id: int
    name: str
    position: str
    team: str | None = None
    playoff_override_points: float | None = None
    computed_points: float  # Sum of game points, ignoring the season override
    total_points: float  # Effective total (season override when set)
    rounds: list[str] = Field(default_factory=list)  # Labels played, weeks first then playoff order
    games: list[GamePointsResponse]


# ========== ENTRY SCHEMAS ==========


class RosterPlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot: str
    player_id: int
    name: str
    position: str
    team: str | None = None
    team_seed: int | None = None
    team_alive: bool  # In the bracket and not yet eliminated
    locked: bool = False
    total_points: float


class EntryResponse(BaseModel):
    """An entry with its cached total and roster in slot order."""

    id: int
    team_name: str
    participant_name: str
    paid: bool
    total_points: float
    roster: list[RosterPlayerResponse]
    roster_errors: list[str] = Field(default_factory=list)
