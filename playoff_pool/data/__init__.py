"""Stat ingestion: canonical records, identity resolution, game upserts and the importer."""

from .games import GameGroup, GameUpserter, group_records
from .identity import IdentityResolver, MatchResult, MatchStatus, PlayerDirectory, map_external_ids, normalize_name
from .importer import ImportResult, StatImporter, import_stats, replace_stats
from .records import StatRecord, has_stat_values, validate_records

__all__ = [
    "GameGroup",
    "GameUpserter",
    "IdentityResolver",
    "ImportResult",
    "MatchResult",
    "MatchStatus",
    "PlayerDirectory",
    "StatImporter",
    "StatRecord",
    "group_records",
    "has_stat_values",
    "import_stats",
    "map_external_ids",
    "normalize_name",
    "replace_stats",
    "validate_records",
]
