"""
CLI commands for loading stats and scoring entries.

This module provides the commissioner's command-line interface using Typer,
with rich tables for import summaries.

Key CLI Patterns Demonstrated:
- Command grouping with typer.Typer()
- Option handling with typer.Option()
- Error handling and exit codes
- Logging configuration for debugging

Stat Workflow:
1. Initialize database structure (init-db)
2. Map provider ids onto players (map-sleeper-ids), optional but it makes
   matching exact
3. Load stats from a CSV, ESPN or Sleeper
4. Every load recalculates entry totals; recalculate can also be run alone
"""

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config.settings import settings
from ..data.collection import ESPNStatsCollector, SleeperStatsCollector, StatsCSVParser
from ..data.identity import map_external_ids
from ..data.importer import ImportResult, import_stats, replace_stats
from ..database.connection import get_session_context
from ..database.init_db import create_database
from ..rounds import PlayoffRound, SeasonType
from ..scoring.recalculate import recalculate_entry_totals

app = typer.Typer(help="Playoff pool stat loading and scoring commands")
console = Console()


def setup_logging():
    """
    Configure logging for stat operations.

    Sets up dual logging output:
    - File logging for permanent records
    - Console logging for real-time feedback
    """
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def print_import_summary(result: ImportResult, title: str):
    """Render import counts as a two-column table."""
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="bold")

    table.add_row("Records received", str(result.received))
    table.add_row("Stat lines imported", str(result.imported))
    table.add_row("Skipped (all zero)", str(result.skipped_empty))
    table.add_row("Skipped (unmatched player)", str(result.unmatched_players))
    table.add_row("Skipped (ambiguous player)", str(result.ambiguous_players))
    table.add_row("Skipped (no game)", str(result.unmatched_games))
    if result.duplicates:
        table.add_row("Superseded duplicates", str(result.duplicates))
    table.add_row("Games created", str(result.games_created))
    table.add_row("Games updated", str(result.games_updated))
    if result.rows_deleted:
        table.add_row("Old stat rows deleted", str(result.rows_deleted))
    table.add_row("Entries recalculated", str(result.entries_recalculated))

    console.print(table)


# ========== DATABASE MANAGEMENT COMMANDS ==========


@app.command()
def init_db():
    """
    Initialize the database with required tables and structure.

    Example usage:
        playoff-pool init-db
    """
    typer.echo("Initializing database...")
    try:
        create_database()
        typer.echo("✅ Database initialized successfully!")
    except Exception as e:
        typer.echo(f"❌ Database initialization failed: {e}")
        raise typer.Exit(1) from e


# ========== STAT LOADING COMMANDS ==========


@app.command()
def import_csv(
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Stats CSV file"),
    replace: bool = typer.Option(False, "--replace", help="Delete all existing stats first"),
    delimiter: str = typer.Option(None, "--delimiter", "-d", help="Field delimiter (default from settings)"),
):
    """
    Import a commissioner stats CSV.

    Examples:
        playoff-pool import-csv wildcard.csv
        playoff-pool import-csv all_rounds.csv --replace
    """
    setup_logging()
    typer.echo(f"Importing stats from {csv_path}{' (replace mode)' if replace else ''}...")

    try:
        records = StatsCSVParser(delimiter=delimiter).parse_file(csv_path)
        with get_session_context() as session:
            result = (replace_stats if replace else import_stats)(session, records)
    except Exception as e:
        typer.echo(f"❌ CSV import failed: {e}")
        raise typer.Exit(1) from e

    print_import_summary(result, f"CSV import: {csv_path.name}")
    typer.echo(f"✅ Imported {result.imported} stat lines ({result.skipped} skipped).")


@app.command()
def fetch_espn(
    season: int = typer.Option(None, "--season", "-s", help="Season year (defaults to the current season)"),
    rounds: list[PlayoffRound] = typer.Option([], "--round", "-r", help="Playoff round(s) to fetch"),
    weeks: list[int] = typer.Option([], "--week", "-w", help="Regular-season week(s) to fetch"),
):
    """
    Re-fetch ESPN box scores and REPLACE all stats with them.

    Examples:
        playoff-pool fetch-espn -r Wildcard -r Divisional
        playoff-pool fetch-espn -s 2024 -w 17 -w 18
    """
    setup_logging()
    if bool(rounds) == bool(weeks):
        typer.echo("❌ Give either --round (playoffs) or --week (regular season), not both or neither.")
        raise typer.Exit(1)

    season = season or settings.season_year
    collector = ESPNStatsCollector()
    try:
        if weeks:
            typer.echo(f"Fetching ESPN {season} regular-season weeks {sorted(set(weeks))}...")
            records = collector.fetch_weeks(season, weeks)
        else:
            records = []
            for playoff_round in dict.fromkeys(rounds):
                typer.echo(f"Fetching ESPN {season} {PlayoffRound(playoff_round).value} round...")
                records.extend(collector.fetch_playoff_round(season, playoff_round))

        with get_session_context() as session:
            result = replace_stats(session, records)
    except Exception as e:
        typer.echo(f"❌ ESPN fetch failed: {e}")
        raise typer.Exit(1) from e

    if not records:
        typer.echo("⚠️ No stats returned for the selected weeks or rounds.")
    print_import_summary(result, f"ESPN {season}")
    typer.echo(f"✅ ESPN fetch complete! Imported {result.imported} stat lines.")


@app.command()
def fetch_sleeper(
    season: int = typer.Option(None, "--season", "-s", help="Season year (defaults to Sleeper's current season)"),
    week: int = typer.Option(None, "--week", "-w", help="Week to fetch (defaults to the latest week with stats)"),
    season_type: SeasonType = typer.Option(SeasonType.POST, "--season-type", help="regular or post"),
    replace: bool = typer.Option(False, "--replace", help="Delete all existing stats first"),
):
    """
    Import Sleeper weekly stats.

    Examples:
        playoff-pool fetch-sleeper
        playoff-pool fetch-sleeper -s 2024 -w 20
    """
    setup_logging()
    collector = SleeperStatsCollector()
    try:
        if week is not None:
            records = collector.fetch_week(season or settings.season_year, week, season_type)
        else:
            records = collector.fetch_latest_stats(season)

        with get_session_context() as session:
            result = (replace_stats if replace else import_stats)(session, records)
    except Exception as e:
        typer.echo(f"❌ Sleeper fetch failed: {e}")
        raise typer.Exit(1) from e

    print_import_summary(result, "Sleeper")
    typer.echo(f"✅ Sleeper fetch complete! Imported {result.imported} stat lines.")


# ========== SCORING COMMANDS ==========


@app.command()
def recalculate():
    """Rebuild every entry's cached total from current stats and overrides."""
    setup_logging()
    try:
        with get_session_context() as session:
            totals = recalculate_entry_totals(session)
    except Exception as e:
        typer.echo(f"❌ Recalculation failed: {e}")
        raise typer.Exit(1) from e

    typer.echo(f"✅ Recalculated {len(totals)} entries.")


@app.command()
def map_sleeper_ids(
    dry_run: bool = typer.Option(False, "--dry-run", help="Report matches without saving them"),
    force: bool = typer.Option(False, "--force", help="Re-map players that already have an id"),
):
    """
    Fill player external ids from the Sleeper player directory.

    Players already mapped are skipped unless --force is given. Ambiguous
    names are never guessed; they are listed for manual review.
    """
    setup_logging()
    try:
        provider_players = SleeperStatsCollector().provider_players()
        with get_session_context() as session:
            result = map_external_ids(session, provider_players, dry_run=dry_run, force=force)
    except Exception as e:
        typer.echo(f"❌ Sleeper id mapping failed: {e}")
        raise typer.Exit(1) from e

    table = Table(title=f"Sleeper id mapping{' (dry run)' if dry_run else ''}")
    table.add_column("Outcome", style="cyan")
    table.add_column("Players", justify="right", style="bold")
    table.add_row("Updated", str(result.updated))
    table.add_row("Skipped (already mapped / unassigned)", str(result.skipped))
    table.add_row("Unmatched", str(result.unmatched))
    table.add_row("Ambiguous", str(result.ambiguous))
    console.print(table)

    if result.unmatched_names:
        console.print(f"[yellow]Unmatched sample:[/yellow] {', '.join(result.unmatched_names[:20])}")
    if result.ambiguous_names:
        console.print(f"[yellow]Ambiguous sample:[/yellow] {', '.join(result.ambiguous_names[:20])}")


if __name__ == "__main__":
    app()
