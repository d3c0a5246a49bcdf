"""Find or create the Game each group of stat records belongs to.

Records from one provider game share a game key (an ESPN event id, a Sleeper
week key, whatever the CSV says). The importer groups records by that key
and asks the GameUpserter for the matching Game row:

- Known key: the game's round, week and season type are refreshed
- New key: a game is created with the first two team codes that exist in the
  teams table as home/away, and marked final (imported stats are post-game)

Providers like Sleeper report a whole week under one key, so the teams seen
in a group are not always a real matchup. When fewer than two codes resolve,
the remaining side(s) are filled from the teams table in id order. That
placeholder pairing is deterministic, so re-imports find the same game. Only
with fewer than two teams in the database is the game degenerate, and the
group is skipped.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..database.models import Game, Team

logger = logging.getLogger(__name__)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass
class GameGroup:
    """Game metadata gathered from every record sharing one game key."""

    game_key: str
    kickoff_at: datetime | None = None
    round: str | None = None
    season_type: str | None = None
    week: int | None = None
    team_codes: list[str] = field(default_factory=list)

    def add(self, record) -> None:
        # First value seen wins for every field
        if self.kickoff_at is None and record.kickoff_at is not None:
            self.kickoff_at = _naive_utc(record.kickoff_at)
        if self.round is None and record.round:
            self.round = record.round
        if self.season_type is None and record.season_type:
            self.season_type = str(getattr(record.season_type, "value", record.season_type))
        if self.week is None and record.week is not None:
            self.week = record.week
        team = (record.team_abbr or "").upper()
        if team and team not in self.team_codes:
            self.team_codes.append(team)


def group_records(records) -> dict[str, GameGroup]:
    """Group records by game key, preserving first-seen order."""
    groups: dict[str, GameGroup] = {}
    for record in records:
        group = groups.get(record.game_key)
        if group is None:
            group = groups[record.game_key] = GameGroup(record.game_key)
        group.add(record)
    return groups


class GameUpserter:
    """Idempotent game lookup/creation keyed by external game key.

    Team ids are loaded once at construction; use one upserter per batch.
    The created/updated counters feed the import summary.
    """

    def __init__(self, session: Session):
        teams = session.query(Team.id, Team.abbreviation).order_by(Team.id).all()
        self.team_ids = {abbreviation.upper(): team_id for team_id, abbreviation in teams}
        self.ordered_team_ids = [team_id for team_id, _ in teams]
        self.created = 0
        self.updated = 0

    def _pair_teams(self, team_codes: list[str]) -> tuple[int, int] | None:
        chosen = []
        for code in team_codes:
            team_id = self.team_ids.get(code)
            if team_id is not None and team_id not in chosen:
                chosen.append(team_id)
            if len(chosen) == 2:
                return chosen[0], chosen[1]

        for team_id in self.ordered_team_ids:
            if len(chosen) == 2:
                break
            if team_id not in chosen:
                chosen.append(team_id)

        if len(chosen) < 2:
            return None
        return chosen[0], chosen[1]

    def upsert(self, session: Session, game_key: str, group: GameGroup) -> Game | None:
        """Return the game for game_key, creating or refreshing it as needed.

        Returns None when the game is degenerate (no two teams to pair).
        """
        game = session.query(Game).filter(Game.external_game_key == game_key).one_or_none()

        if game is not None:
            if group.round is not None:
                game.round = group.round
            if group.week is not None:
                game.week = group.week
            if group.season_type is not None:
                game.season_type = group.season_type
            self.updated += 1
            return game

        pairing = self._pair_teams(group.team_codes)
        if pairing is None:
            logger.warning(f"Cannot create game {game_key}: fewer than two teams in the database")
            return None

        home_team_id, away_team_id = pairing
        game = Game(
            external_game_key=game_key,
            round=group.round,
            season_type=group.season_type or "post",
            week=group.week,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            kickoff_at=group.kickoff_at or datetime.now(timezone.utc).replace(tzinfo=None),
            is_final=True,
        )
        session.add(game)
        session.flush()
        self.created += 1
        logger.debug(f"Created game {game_key} (id={game.id})")
        return game
