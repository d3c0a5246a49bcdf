"""
Admin endpoints: stat imports, provider fetches, overrides and recalculation.

Every endpoint here is a synchronous administrative action: it runs to
completion and answers with counts (or a human-readable failure reason).

Key FastAPI Concepts Used:
- APIRouter: Groups related endpoints under /api/admin
- Depends(): Injects the database session and the provider collectors
- HTTPException: Maps pipeline failures to HTTP errors
- UploadFile: Multipart CSV uploads

Error mapping:
- StatValidationError, CSVParsingError, MissingColumnsError -> 400
  (nothing was written)
- PlayerNotFoundError / StatLineNotFoundError -> 404
- ProviderError -> 502 (ESPN or Sleeper unavailable; nothing was written
  because fetches finish before the import starts)
- ValueError from a collector (missing season, unnormalizable payload) -> 400

Provider fetches block on HTTP retries, so those handlers are plain `def`
and FastAPI runs them in its threadpool.

Route handlers own the transaction: get_db() never commits, so each handler
commits after a successful operation and rolls back on failure.
"""

import logging
from collections.abc import Callable

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ...config.settings import settings
from ...data.collection import ESPNStatsCollector, SleeperStatsCollector, StatsCSVParser
from ...data.importer import ImportResult, import_stats, replace_stats
from ...database.connection import get_db
from ...database.models import Player, PlayerGameStat
from ...exceptions import (
    CSVParsingError,
    MissingColumnsError,
    PlayerNotFoundError,
    ProviderError,
    StatLineNotFoundError,
    StatValidationError,
)
from ...scoring.recalculate import recalculate_entry_totals
from ..schemas import (
    ESPNFetchRequest,
    ImportResultResponse,
    OverrideRequest,
    PlayerOverrideResponse,
    RecalculateResponse,
    SleeperFetchRequest,
    StatBatchRequest,
    StatOverrideResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ========== DEPENDENCIES ==========


def get_espn_collector() -> ESPNStatsCollector:
    return ESPNStatsCollector()


def get_sleeper_collector(request: Request) -> SleeperStatsCollector:
    """Sleeper collector sharing the app's player directory cache."""
    return SleeperStatsCollector(cache=request.app.state.sleeper_cache)


# ========== HELPERS ==========


def _import_response(result: ImportResult, source: str, message: str | None = None) -> ImportResultResponse:
    return ImportResultResponse(source=source, message=message, **result.to_dict())


def _run_import(db: Session, importer: Callable, records: list, source: str) -> ImportResult:
    """Run an import in the request's transaction and map its failures."""
    try:
        result = importer(db, records)
        db.commit()
        return result
    except StatValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors}) from e
    except Exception as e:
        db.rollback()
        logger.exception(f"{source} stat import failed")
        raise HTTPException(status_code=500, detail=f"Stat import failed: {e!s}") from e


# ========== IMPORT ENDPOINTS ==========


@router.post("/stats/import", response_model=ImportResultResponse)
async def import_stat_batch(batch: StatBatchRequest, db: Session = Depends(get_db)):
    """Upsert a JSON batch of canonical stat records on top of existing stats."""
    result = _run_import(db, import_stats, batch.records, "json")
    return _import_response(result, "json")


@router.post("/stats/replace", response_model=ImportResultResponse)
async def replace_stat_batch(batch: StatBatchRequest, db: Session = Depends(get_db)):
    """Delete every stat row, then import the batch. An empty batch clears all stats."""
    result = _run_import(db, replace_stats, batch.records, "json")
    return _import_response(result, "json")


@router.post("/stats/upload", response_model=ImportResultResponse)
async def upload_stats_csv(
    file: UploadFile = File(..., description="Stats CSV with the canonical header row"),
    replace: bool = Query(False, description="Delete all existing stats first"),
    db: Session = Depends(get_db),
):
    """
    Upload a commissioner stats CSV.

    Processing Pipeline:
    1. Validate the file (name, extension, size)
    2. Parse every row into a canonical stat record
    3. Import (or replace) and recalculate entry totals

    Raises:
        HTTPException: 400 for file or row errors, 500 for processing errors
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")
    if not file.filename.lower().endswith((".csv", ".txt", ".tsv")):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a CSV file.")

    content = await file.read()
    if len(content) == 0:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > settings.csv_max_upload_bytes:
        limit_mb = settings.csv_max_upload_bytes // (1024 * 1024)
        raise HTTPException(status_code=400, detail=f"File too large. Maximum size is {limit_mb}MB.")

    try:
        records = StatsCSVParser().parse_bytes(content, source=file.filename)
    except (CSVParsingError, MissingColumnsError) as e:
        raise HTTPException(status_code=400, detail=f"CSV parsing error: {e!s}") from e
    except StatValidationError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors}) from e

    result = await run_in_threadpool(_run_import, db, replace_stats if replace else import_stats, records, "csv")
    return _import_response(result, "csv", message=f"Processed {file.filename}")


# ========== PROVIDER FETCH ENDPOINTS ==========


@router.post("/stats/fetch-espn", response_model=ImportResultResponse)
def fetch_espn_stats(
    request: ESPNFetchRequest,
    db: Session = Depends(get_db),
    collector: ESPNStatsCollector = Depends(get_espn_collector),
):
    """Re-fetch the selected ESPN rounds or weeks from scratch (replace mode)."""
    season = request.season_year or settings.season_year
    try:
        if request.mode == "regular":
            records = collector.fetch_weeks(season, request.weeks)
        else:
            records = []
            for playoff_round in dict.fromkeys(request.rounds):
                records.extend(collector.fetch_playoff_round(season, playoff_round))
    except ProviderError as e:
        logger.warning(f"ESPN fetch failed: {e}")
        raise HTTPException(status_code=502, detail=f"ESPN fetch failed: {e!s}") from e
    except ValueError as e:
        logger.warning(f"ESPN returned stats that could not be normalized: {e}")
        raise HTTPException(status_code=400, detail=f"ESPN stats could not be normalized: {e!s}") from e

    result = _run_import(db, replace_stats, records, "espn")
    message = None if records else "No stats returned for the selected weeks or rounds."
    return _import_response(result, "espn", message=message)


@router.post("/stats/fetch-sleeper", response_model=ImportResultResponse)
def fetch_sleeper_stats(
    request: SleeperFetchRequest,
    db: Session = Depends(get_db),
    collector: SleeperStatsCollector = Depends(get_sleeper_collector),
):
    """Import Sleeper stats for one week, or for the latest week that has any."""
    try:
        if request.week is not None:
            season = request.season_year or settings.season_year
            records = collector.fetch_week(season, request.week, request.season_type)
        else:
            records = collector.fetch_latest_stats(request.season_year)
    except ProviderError as e:
        logger.warning(f"Sleeper fetch failed: {e}")
        raise HTTPException(status_code=502, detail=f"Sleeper fetch failed: {e!s}") from e
    except ValueError as e:
        logger.warning(f"Sleeper fetch rejected: {e}")
        raise HTTPException(status_code=400, detail=f"Sleeper fetch failed: {e!s}") from e

    result = _run_import(db, replace_stats if request.replace else import_stats, records, "sleeper")
    message = None if records else "Sleeper returned no stats."
    return _import_response(result, "sleeper", message=message)


# ========== RECALCULATION AND OVERRIDES ==========


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate(db: Session = Depends(get_db)):
    """Rebuild every entry's cached total from the current stats and overrides."""
    totals = recalculate_entry_totals(db)
    db.commit()
    return RecalculateResponse(entries_recalculated=len(totals), totals=totals)


def _set_player_override(db: Session, player_id: int, points: float | None) -> Player:
    player = db.get(Player, player_id)
    if player is None:
        raise PlayerNotFoundError(f"Player {player_id} not found")
    player.playoff_override_points = points
    return player


def _set_stat_override(db: Session, stat_id: int, points: float | None) -> PlayerGameStat:
    stat = db.get(PlayerGameStat, stat_id)
    if stat is None:
        raise StatLineNotFoundError(f"Stat line {stat_id} not found")
    stat.manual_override_points = points
    return stat


@router.post("/players/{player_id}/override", response_model=PlayerOverrideResponse)
async def set_player_override(player_id: int, request: OverrideRequest, db: Session = Depends(get_db)):
    """Set (or clear with null) a player's season-level override."""
    try:
        player = _set_player_override(db, player_id, request.points)
    except PlayerNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    totals = recalculate_entry_totals(db)
    db.commit()
    return PlayerOverrideResponse(
        player_id=player.id,
        playoff_override_points=player.playoff_override_points,
        entries_recalculated=len(totals),
    )


@router.post("/stats/{stat_id}/override", response_model=StatOverrideResponse)
async def set_stat_override(stat_id: int, request: OverrideRequest, db: Session = Depends(get_db)):
    """Set (or clear with null) the override on one player's single game."""
    try:
        stat = _set_stat_override(db, stat_id, request.points)
    except StatLineNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    totals = recalculate_entry_totals(db)
    db.commit()
    return StatOverrideResponse(
        stat_id=stat.id,
        player_id=stat.player_id,
        game_id=stat.game_id,
        manual_override_points=stat.manual_override_points,
        entries_recalculated=len(totals),
    )
