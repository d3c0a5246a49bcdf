"""ESPN box score collector.

ESPN's public site API has no per-player fantasy endpoint, so a round is
assembled from two calls per game:

1. scoreboard?seasontype=3&week=N&year=YYYY lists the events (games)
2. summary?event=ID returns the box score and the scoring plays

Box score categories map onto the canonical record like this:

- passing / rushing / receiving: yards and touchdowns per athlete
- kicking: "made/attempts" strings for field goals and extra points
- defensive, interceptions, fumbles, kickreturns, puntreturns: summed per
  team into one DST record (fumble recoveries only count when the athlete
  also appears in a defensive or return category, so an offensive player
  falling on his own fumble is not credited to the defense)

Field-goal distances are not in the box score. They come from scoring-play
text such as "Justin Tucker 47 Yd Field Goal"; any made kicks the plays do
not explain are counted in the 0-39 bucket.

ESPN numbers postseason weeks from 1 (Wildcard) to 4 (Super Bowl) under
seasontype=3; the regular season is seasontype=2.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass

from ...config.settings import settings
from ...exceptions import ProviderError
from ...roster import KNOWN_POSITIONS, normalize_position
from ...rounds import PlayoffRound, SeasonType, playoff_week_for_round
from ..identity import normalize_name
from ..records import StatRecord, has_stat_values
from .provider_client import ProviderClient

logger = logging.getLogger(__name__)

ESPN_SEASON_TYPES = {SeasonType.REGULAR: 2, SeasonType.POST: 3}

FIELD_GOAL_TEXT = re.compile(r"^(.+?)\s+(\d{1,3})\s*Yd\s+Field Goal", re.IGNORECASE)
MADE_ATTEMPTS = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*[/-]\s*\d+\s*$")

DEFENSE_CATEGORIES = {"defensive", "interceptions", "kickreturns", "puntreturns"}


def parse_number(value) -> float:
    """Parse one ESPN box score cell.

    Cells are numbers, numeric strings ("-3"), "made/attempts" pairs
    ("2/3", "2-3") or junk ("--"). Pairs yield the made count; junk is 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return 0.0
    pair = MADE_ATTEMPTS.match(text)
    if pair:
        return float(pair.group(1))
    try:
        return float(text)
    except ValueError:
        return 0.0


def parse_field_goal_text(text: str) -> tuple[str, int] | None:
    """("Justin Tucker", 47) from "Justin Tucker 47 Yd Field Goal", else None."""
    match = FIELD_GOAL_TEXT.match(text or "")
    if not match:
        return None
    return match.group(1).strip(), int(match.group(2))


def _stat_value(keys: list, stats: list, key: str) -> float:
    if key not in keys:
        return 0.0
    index = keys.index(key)
    return parse_number(stats[index]) if index < len(stats) else 0.0


@dataclass
class _KickerBuckets:
    fg0_39: int = 0
    fg40_49: int = 0
    fg50_59: int = 0
    fg60_plus: int = 0

    def add(self, distance: int) -> None:
        if distance >= 60:
            self.fg60_plus += 1
        elif distance >= 50:
            self.fg50_59 += 1
        elif distance >= 40:
            self.fg40_49 += 1
        else:
            self.fg0_39 += 1

    @property
    def total(self) -> int:
        return self.fg0_39 + self.fg40_49 + self.fg50_59 + self.fg60_plus


@dataclass
class _DefenseTotals:
    interceptions: float = 0
    sacks: float = 0
    safeties: float = 0
    fumble_recoveries: float = 0
    defensive_tds: float = 0
    return_tds: float = 0


class ESPNStatsCollector:
    """Fetch and normalize ESPN box scores into StatRecord batches.

    Example:
        collector = ESPNStatsCollector()
        records = collector.fetch_playoff_round(2024, PlayoffRound.DIVISIONAL)
        import_stats(session, records)
    """

    def __init__(self, client: ProviderClient | None = None):
        self.client = client or ProviderClient(settings.espn_base_url, provider="ESPN")

    def fetch_playoff_round(self, season: int, playoff_round: PlayoffRound | str) -> list[StatRecord]:
        """All stat records for one postseason round."""
        playoff_round = PlayoffRound(playoff_round)
        week = playoff_week_for_round(playoff_round)
        return self.fetch_week(season, week, SeasonType.POST, playoff_round.value)

    def fetch_weeks(
        self, season: int, weeks: list[int], season_type: SeasonType | str = SeasonType.REGULAR
    ) -> list[StatRecord]:
        """Stat records for several weeks, concatenated in week order."""
        records = []
        for week in sorted(set(weeks)):
            records.extend(self.fetch_week(season, week, season_type))
        return records

    def fetch_week(
        self,
        season: int,
        week: int,
        season_type: SeasonType | str = SeasonType.POST,
        playoff_round: str | None = None,
    ) -> list[StatRecord]:
        """Fetch one scoreboard week and every game summary on it.

        A failing scoreboard raises ProviderError. A failing summary only
        skips that game.
        """
        season_type = SeasonType(season_type)
        scoreboard = self.client.get_json(
            "scoreboard",
            params={"seasontype": ESPN_SEASON_TYPES[season_type], "week": week, "year": season},
        )
        events = scoreboard.get("events") or []
        logger.info(f"ESPN {season} {season_type.value} week {week}: {len(events)} games")

        records = []
        for event in events:
            event_id = str(event.get("id", ""))
            if not event_id:
                continue
            try:
                summary = self.client.get_json("summary", params={"event": event_id})
            except ProviderError as e:
                logger.warning(f"Skipping ESPN event {event_id}: {e}")
                continue

            context = {
                "game_key": event_id,
                "round": playoff_round if season_type is SeasonType.POST else None,
                "season_type": season_type.value,
                "week": week,
                "kickoff_at": event.get("date"),
            }
            records.extend(self.parse_summary(summary, context))

        logger.info(f"ESPN week {week}: normalized {len(records)} stat records")
        return records

    def _field_goal_buckets(self, summary: dict) -> dict[tuple[str, str], _KickerBuckets]:
        buckets: dict[tuple[str, str], _KickerBuckets] = defaultdict(_KickerBuckets)
        for play in summary.get("scoringPlays") or []:
            text = play.get("text") or ""
            type_name = (play.get("scoringType") or {}).get("name") or ""
            type_text = (play.get("type") or {}).get("text") or ""
            if not any("field goal" in value.lower() for value in (type_name, type_text, text)):
                continue
            parsed = parse_field_goal_text(text)
            team = ((play.get("team") or {}).get("abbreviation") or "").upper()
            if not parsed or not team:
                continue
            kicker, distance = parsed
            buckets[(normalize_name(kicker), team)].add(distance)
        return buckets

    def parse_summary(self, summary: dict, context: dict) -> list[StatRecord]:
        """Turn one game summary into player records plus one DST record per team.

        context carries game_key, round, season_type, week and kickoff_at.
        """
        fg_buckets = self._field_goal_buckets(summary)
        players: dict[str, dict] = {}
        defenses: dict[str, _DefenseTotals] = defaultdict(_DefenseTotals)

        for team in (summary.get("boxscore") or {}).get("players") or []:
            team_abbr = ((team.get("team") or {}).get("abbreviation") or "").upper()
            if not team_abbr:
                continue
            categories = team.get("statistics") or []

            defense_eligible = {
                str((line.get("athlete") or {}).get("id"))
                for category in categories
                if (category.get("name") or "").lower() in DEFENSE_CATEGORIES
                for line in category.get("athletes") or []
                if (line.get("athlete") or {}).get("id")
            }

            for category in categories:
                name = (category.get("name") or "").lower()
                keys = category.get("keys") or []
                for line in category.get("athletes") or []:
                    athlete = line.get("athlete") or {}
                    athlete_id = str(athlete.get("id") or "")
                    if not athlete_id:
                        continue
                    stats = line.get("stats") or []
                    display_name = athlete.get("displayName") or ""
                    position = normalize_position((athlete.get("position") or {}).get("abbreviation"))

                    entry = players.setdefault(
                        athlete_id,
                        {
                            **context,
                            "external_player_id": athlete_id,
                            "player_name": display_name,
                            "team_abbr": team_abbr,
                            "position": position if position in KNOWN_POSITIONS else None,
                        },
                    )

                    def add(field_name, key):
                        entry[field_name] = entry.get(field_name, 0) + _stat_value(keys, stats, key)

                    if name == "passing":
                        add("passing_yards", "passingYards")
                        add("passing_tds", "passingTouchdowns")
                    elif name == "rushing":
                        add("rushing_yards", "rushingYards")
                        add("rushing_tds", "rushingTouchdowns")
                    elif name == "receiving":
                        add("receptions", "receptions")
                        add("receiving_yards", "receivingYards")
                        add("receiving_tds", "receivingTouchdowns")
                    elif name == "kicking":
                        self._apply_kicking(entry, keys, stats, fg_buckets.get((normalize_name(display_name), team_abbr)))
                    elif name == "defensive":
                        defense = defenses[team_abbr]
                        defense.sacks += _stat_value(keys, stats, "sacks")
                        defense.defensive_tds += _stat_value(keys, stats, "defensiveTouchdowns")
                        defense.safeties += _stat_value(keys, stats, "safeties")
                    elif name == "interceptions":
                        defense = defenses[team_abbr]
                        defense.interceptions += _stat_value(keys, stats, "interceptions")
                        defense.return_tds += _stat_value(keys, stats, "interceptionTouchdowns")
                    elif name == "fumbles":
                        recovered = _stat_value(keys, stats, "fumblesRecovered")
                        if recovered and athlete_id in defense_eligible:
                            defenses[team_abbr].fumble_recoveries += recovered
                    elif name == "kickreturns":
                        defenses[team_abbr].return_tds += _stat_value(keys, stats, "kickReturnTouchdowns")
                    elif name == "puntreturns":
                        defenses[team_abbr].return_tds += _stat_value(keys, stats, "puntReturnTouchdowns")

        records = [StatRecord.model_validate(entry) for entry in players.values()]

        for team_abbr, defense in defenses.items():
            records.append(
                StatRecord.model_validate(
                    {
                        **context,
                        "team_abbr": team_abbr,
                        "position": "DST",
                        "interceptions": defense.interceptions,
                        "sacks": defense.sacks,
                        "safeties": defense.safeties,
                        "fumble_recoveries": defense.fumble_recoveries,
                        # Pick-sixes show up in both defensive and interception totals
                        "return_tds": max(defense.defensive_tds, defense.return_tds),
                    }
                )
            )

        return [record for record in records if has_stat_values(record)]

    @staticmethod
    def _apply_kicking(entry: dict, keys: list, stats: list, buckets: _KickerBuckets | None) -> None:
        fg_made = int(_stat_value(keys, stats, "fieldGoalsMade/fieldGoalAttempts"))
        xp_made = _stat_value(keys, stats, "extraPointsMade/extraPointAttempts")
        if not fg_made and not xp_made:
            return
        entry["xp_made"] = entry.get("xp_made", 0) + xp_made
        if buckets is None:
            entry["fg0_39"] = entry.get("fg0_39", 0) + fg_made
            return
        entry["fg0_39"] = buckets.fg0_39 + max(0, fg_made - buckets.total)
        entry["fg40_49"] = buckets.fg40_49
        entry["fg50_59"] = buckets.fg50_59
        entry["fg60_plus"] = buckets.fg60_plus
