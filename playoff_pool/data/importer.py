"""Persist canonical stat records and refresh every entry total.

The importer is the only writer of player_game_stats. One call handles one
batch:

1. Validate the whole batch (nothing is written if any record is bad)
2. Drop records whose counting stats are all zero
3. Group records by game key and find or create each game
4. Resolve each record to an internal player
5. Upsert the (player, game) stat row: read the current row, then insert a
   new one or overwrite every counting column of the existing one
6. Flush, then recalculate every entry's cached total exactly once

Unmatched players, ambiguous players and games that cannot be created are
soft skips: they are counted in the ImportResult and logged, never raised.
Database and provider failures propagate.

Replace mode (replace_stats) deletes every stat row before step 3 so that
only the new batch remains. An empty replacement batch still recalculates,
leaving entries with override points only.

For beginners:

Full replace vs merge: when a player's row already exists, every counting
column is overwritten, including ones the new record leaves at zero. A
partial earlier import therefore cannot leave stale values behind. The one
column an import never touches is manual_override_points, the
commissioner's per-game correction.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass

from sqlalchemy.orm import Session

from ..database.models import PlayerGameStat
from ..scoring.recalculate import recalculate_entry_totals
from .games import GameUpserter, group_records
from .identity import IdentityResolver, MatchStatus
from .records import StatRecord, has_stat_values, validate_records

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Counts reported back to the admin who triggered an import."""

    received: int = 0
    imported: int = 0
    skipped_empty: int = 0
    unmatched_players: int = 0
    ambiguous_players: int = 0
    unmatched_games: int = 0
    duplicates: int = 0
    games_created: int = 0
    games_updated: int = 0
    rows_deleted: int = 0
    entries_recalculated: int = 0

    @property
    def skipped(self) -> int:
        return self.skipped_empty + self.unmatched_players + self.ambiguous_players + self.unmatched_games

    def to_dict(self) -> dict:
        data = asdict(self)
        data["skipped"] = self.skipped
        return data


class StatImporter:
    """Imports stat batches into one session.

    The caller owns the transaction: nothing here commits, so a failure
    mid-batch can be rolled back by the session's owner.

    Args:
        aliases: Identity corrections ("Name|TEAM" -> external id); defaults
            to settings.identity_aliases
    """

    def __init__(self, aliases: dict[str, str] | None = None):
        self.aliases = aliases

    def import_stats(self, session: Session, records: Iterable[StatRecord | Mapping]) -> ImportResult:
        """Upsert a batch on top of the existing stats."""
        validated = validate_records(records)
        result = ImportResult(received=len(validated))
        logger.info(f"Importing {len(validated)} stat records")
        self._apply(session, validated, result)
        return result

    def replace_stats(self, session: Session, records: Iterable[StatRecord | Mapping]) -> ImportResult:
        """Delete every stat row, then import the batch."""
        validated = validate_records(records)
        result = ImportResult(received=len(validated))

        result.rows_deleted = session.query(PlayerGameStat).delete()
        session.flush()
        logger.info(f"Replace mode: deleted {result.rows_deleted} stat rows, importing {len(validated)} records")

        self._apply(session, validated, result)
        return result

    def _apply(self, session: Session, records: list[StatRecord], result: ImportResult) -> None:
        informative = [record for record in records if has_stat_values(record)]
        result.skipped_empty = len(records) - len(informative)

        if informative:
            self._write_rows(session, informative, result)

        totals = recalculate_entry_totals(session)
        result.entries_recalculated = len(totals)

        if result.skipped:
            logger.warning(
                f"Skipped {result.skipped} records: {result.skipped_empty} empty, "
                f"{result.unmatched_players} unmatched, {result.ambiguous_players} ambiguous, "
                f"{result.unmatched_games} without a game"
            )
        logger.info(
            f"Imported {result.imported} stat lines "
            f"({result.games_created} games created, {result.games_updated} updated)"
        )

    def _write_rows(self, session: Session, records: list[StatRecord], result: ImportResult) -> None:
        resolver = IdentityResolver.from_session(session, self.aliases)
        upserter = GameUpserter(session)

        games = {key: upserter.upsert(session, key, group) for key, group in group_records(records).items()}
        result.games_created = upserter.created
        result.games_updated = upserter.updated

        game_ids = [game.id for game in games.values() if game is not None]
        rows = {}
        if game_ids:
            existing = session.query(PlayerGameStat).filter(PlayerGameStat.game_id.in_(game_ids)).all()
            rows = {(row.player_id, row.game_id): row for row in existing}
        written = set()

        for record in records:
            game = games[record.game_key]
            if game is None:
                result.unmatched_games += 1
                continue

            match = resolver.resolve(record)
            if match.status is MatchStatus.AMBIGUOUS:
                logger.debug(
                    f"Ambiguous player {record.player_name!r} ({record.team_abbr}): "
                    f"{match.candidates} candidates via {match.strategy}"
                )
                result.ambiguous_players += 1
                continue
            if not match.matched:
                logger.debug(f"No player for {record.player_name!r} ({record.team_abbr}, id={record.external_player_id})")
                result.unmatched_players += 1
                continue

            key = (match.player_id, game.id)
            row = rows.get(key)
            if row is None:
                row = PlayerGameStat(player_id=match.player_id, game_id=game.id)
                session.add(row)
                rows[key] = row

            for column, value in record.stat_columns().items():
                setattr(row, column, value)
            # The last record for a player and game wins
            if key in written:
                result.duplicates += 1
            else:
                written.add(key)
                result.imported += 1

        session.flush()


def import_stats(session: Session, records: Iterable[StatRecord | Mapping], aliases: dict[str, str] | None = None) -> ImportResult:
    """Convenience wrapper around StatImporter.import_stats."""
    return StatImporter(aliases).import_stats(session, records)


def replace_stats(session: Session, records: Iterable[StatRecord | Mapping], aliases: dict[str, str] | None = None) -> ImportResult:
    """Convenience wrapper around StatImporter.replace_stats."""
    return StatImporter(aliases).replace_stats(session, records)
