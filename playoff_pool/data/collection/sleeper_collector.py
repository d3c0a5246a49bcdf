"""Sleeper weekly stats collector.

Sleeper exposes fantasy-ready stats for a whole week in one call, keyed by
Sleeper player id:

    GET /state/nfl                         current season, week, season type
    GET /stats/nfl/{season}/{week}?season_type=post|regular
    GET /players/nfl                       full player directory (~5MB)

Stats carry no per-game identity, so a week becomes one synthetic game key
("sleeper-2024-post-week-20"). Weeks that have not been played yet come back
with only ranking fields; the collector walks backwards from the start week
until it finds real numbers, trying the other season type for each week
before giving up on it.

For beginners:

The player directory is large and changes rarely. PlayerDirectoryCache keeps
one copy for ttl_seconds. The cache is an object you create and pass in, so
tests and long-running servers each control their own copy.
"""

import logging
import time
from collections.abc import Callable

from ...config.settings import settings
from ...roster import KNOWN_POSITIONS, normalize_position
from ...rounds import SeasonType, round_from_week
from ..identity import ProviderPlayer
from ..records import StatRecord, has_stat_values
from .provider_client import ProviderClient

logger = logging.getLogger(__name__)

STAT_RANK_KEYS = {
    "pos_rank_half_ppr",
    "pos_rank_ppr",
    "pos_rank_std",
    "rank_half_ppr",
    "rank_ppr",
    "rank_std",
}

# Record field -> Sleeper keys, first present key wins
STAT_KEYS = {
    "passing_yards": ["pass_yd", "pass_yds", "passing_yds"],
    "passing_tds": ["pass_td", "pass_tds", "passing_td"],
    "passing_two_pt": ["pass_2pt", "pass_2pt_conv"],
    "rushing_yards": ["rush_yd", "rush_yds", "rushing_yds"],
    "rushing_tds": ["rush_td", "rush_tds"],
    "rushing_two_pt": ["rush_2pt", "rush_2pt_conv"],
    "receiving_yards": ["rec_yd", "rec_yds", "receiving_yds"],
    "receiving_tds": ["rec_td", "rec_tds"],
    "receiving_two_pt": ["rec_2pt", "rec_2pt_conv"],
    "receptions": ["rec", "receptions"],
    "xp_made": ["xpm", "xp_made"],
    "interceptions": ["def_int", "def_ints"],
    "sacks": ["def_sack", "def_sacks", "sack"],
    "safeties": ["def_safety", "def_safeties"],
    "fumble_recoveries": ["def_fum_rec", "def_st_fum_rec", "fum_rec"],
    "fum2pk": ["fum_2pt_kick", "fum_2pt_kicking"],
    "int2pk": ["int_2pt_kick", "int_2pt_kicking"],
}

# Record field -> Sleeper keys that are all summed
SUMMED_KEYS = {
    "fg0_39": ["fgm_0_19", "fgm_20_29", "fgm_30_39", "fgm_0_39"],
    "fg40_49": ["fgm_40_49"],
    "fg50_59": ["fgm_50_59"],
    "fg60_plus": ["fgm_60_plus", "fgm_60+", "fgm_60"],
    "return_tds": ["def_td", "def_st_td", "def_pr_td", "def_kr_td"],
}

FG_BUCKETS = ("fg0_39", "fg40_49", "fg50_59", "fg60_plus")


def stat_value(stat: dict, keys: list[str]) -> float:
    """First numeric value among keys, else 0."""
    for key in keys:
        value = stat.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str) and value.strip():
            try:
                return float(value)
            except ValueError:
                continue
    return 0.0


def has_only_rank_fields(stat: dict) -> bool:
    return bool(stat) and all(key in STAT_RANK_KEYS for key in stat)


def has_real_stats(stats: dict) -> bool:
    return any(isinstance(item, dict) and not has_only_rank_fields(item) for item in stats.values())


class PlayerDirectoryCache:
    """Time-bounded cache for the Sleeper player directory.

    Args:
        ttl_seconds: How long a fetched directory stays fresh
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.sleeper_players_cache_ttl
        self._clock = clock
        self._players: dict | None = None
        self._fetched_at: float | None = None

    def get(self, loader: Callable[[], dict]) -> dict:
        now = self._clock()
        if self._players is not None and now - self._fetched_at < self.ttl_seconds:
            return self._players
        self._players = loader()
        self._fetched_at = now
        logger.info(f"Loaded Sleeper player directory ({len(self._players)} players)")
        return self._players

    def clear(self) -> None:
        self._players = None
        self._fetched_at = None


class SleeperStatsCollector:
    """Fetch the latest Sleeper week with stats and normalize it."""

    def __init__(self, client: ProviderClient | None = None, cache: PlayerDirectoryCache | None = None):
        self.client = client or ProviderClient(settings.sleeper_base_url, provider="Sleeper")
        self.cache = cache or PlayerDirectoryCache()

    def fetch_players(self) -> dict:
        return self.cache.get(lambda: self.client.get_json("players/nfl"))

    def fetch_state(self) -> dict:
        return self.client.get_json("state/nfl")

    def fetch_week_stats(self, season: int, week: int, season_type: SeasonType | str) -> dict:
        data = self.client.get_json(
            f"stats/nfl/{season}/{week}", params={"season_type": SeasonType(season_type).value}
        )
        return data or {}

    def find_latest_week_with_stats(
        self, season: int, start_week: int, season_type: SeasonType | str
    ) -> tuple[int, SeasonType, dict] | None:
        """Walk back from start_week to the newest week with real stats.

        Returns (week, season type actually used, stats) or None.
        """
        season_type = SeasonType(season_type)
        fallback = SeasonType.REGULAR if season_type is SeasonType.POST else SeasonType.POST

        for week in range(start_week, 0, -1):
            for candidate in (season_type, fallback):
                stats = self.fetch_week_stats(season, week, candidate)
                if has_real_stats(stats):
                    logger.info(f"Sleeper: latest stats are {season} {candidate.value} week {week}")
                    return week, candidate, stats
            logger.debug(f"Sleeper: no stats yet for {season} week {week}")
        return None

    def fetch_latest_stats(self, season: int | None = None) -> list[StatRecord]:
        """Normalized records for the latest week with stats.

        Without a season the current one comes from /state/nfl and the search
        starts at the current week; with one it starts at week 22 (Super Bowl).
        """
        start_week = 22
        season_type = SeasonType.POST
        if season is None:
            state = self.fetch_state()
            season = int(state.get("season") or 0)
            start_week = int(state.get("week") or 1)
            season_type = SeasonType.REGULAR if state.get("season_type") == "regular" else SeasonType.POST
        if not season:
            raise ValueError("Sleeper season year is unavailable")

        latest = self.find_latest_week_with_stats(season, start_week, season_type)
        if latest is None:
            logger.warning(f"Sleeper: no week of {season} has stats yet")
            return []
        week, used_type, stats = latest
        return self.normalize_stats(stats, self.fetch_players(), season, week, used_type)

    def fetch_week(self, season: int, week: int, season_type: SeasonType | str = SeasonType.POST) -> list[StatRecord]:
        """Normalized records for one explicit week (no fallback search)."""
        stats = self.fetch_week_stats(season, week, season_type)
        return self.normalize_stats(stats, self.fetch_players(), season, week, SeasonType(season_type))

    def normalize_stats(
        self, stats: dict, players: dict, season: int, week: int, season_type: SeasonType
    ) -> list[StatRecord]:
        season_type = SeasonType(season_type)
        context = {
            "game_key": f"sleeper-{season}-{season_type.value}-week-{week}",
            "round": round_from_week(week).value if season_type is SeasonType.POST else None,
            "season_type": season_type.value,
            "week": week,
        }

        records = []
        for player_id, stat in stats.items():
            if not isinstance(stat, dict) or has_only_rank_fields(stat):
                continue
            record = self._normalize_line(str(player_id), stat, players.get(str(player_id)) or {}, context)
            if has_stat_values(record):
                records.append(record)

        logger.info(f"Sleeper {context['game_key']}: normalized {len(records)} stat records")
        return records

    @staticmethod
    def _normalize_line(player_id: str, stat: dict, player: dict, context: dict) -> StatRecord:
        team = player.get("team") or player.get("team_abbr")
        position = normalize_position(player.get("position"))

        row = {
            **context,
            "external_player_id": player_id,
            "player_name": player.get("full_name"),
            "team_abbr": team.upper() if team else None,
            "position": position if position in KNOWN_POSITIONS else None,
        }
        for field_name, keys in STAT_KEYS.items():
            row[field_name] = stat_value(stat, keys)
        for field_name, keys in SUMMED_KEYS.items():
            row[field_name] = sum(stat_value(stat, [key]) for key in keys)

        # Some weeks only report total field goals made
        if not any(row[bucket] for bucket in FG_BUCKETS):
            row["fg0_39"] = stat_value(stat, ["fgm"])

        fum2pt = stat_value(stat, ["fum_2pt", "fum_2pt_conv", "fum_2pt_return", "def_fum_2pt"])
        int2pt = stat_value(stat, ["int_2pt", "int_2pt_conv", "int_2pt_return", "def_int_2pt"])
        two_point_returns = stat_value(stat, ["def_2pt", "def_2pt_conv", "def_2pt_return"])
        if not fum2pt and not int2pt and two_point_returns > 0:
            fum2pt = two_point_returns
        row["fum2pt"] = fum2pt
        row["int2pt"] = int2pt

        return StatRecord.model_validate(row)

    def provider_players(self) -> list[ProviderPlayer]:
        """The player directory in the shape map_external_ids expects."""
        return [
            ProviderPlayer(
                external_id=str(player.get("player_id") or player_id),
                name=player.get("full_name"),
                position=player.get("position"),
                team_abbr=player.get("team") or player.get("team_abbr"),
            )
            for player_id, player in self.fetch_players().items()
            if isinstance(player, dict)
        ]
