"""Shared fixtures for the playoff pool test suite.

Every test gets a fresh in-memory SQLite database. StaticPool keeps a single
connection alive so the schema created here is visible to the session the
test uses, and to the FastAPI TestClient thread when the API is exercised.

Seeded pool (the `pool` fixture):
- Teams: KC, BUF, BAL, PIT
- Players: Patrick Mahomes (QB, KC, external id "123"), Josh Allen (QB, BUF),
  Justin Tucker (K, BAL), Kenneth Walker III (RB, BAL), two "Mike Williams"
  WRs (KC and BUF) and the Pittsburgh defense (DST, PIT)
- Entries: "Chiefs Kingdom" rosters Mahomes, Tucker and the PIT defense;
  "Empty Bench" has no roster
"""

from dataclasses import dataclass
from datetime import datetime

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from playoff_pool.data.collection.provider_client import ProviderClient
from playoff_pool.database.models import Base, Entry, EntryPlayer, Game, Player, Team


@dataclass
class SeededPool:
    teams: dict
    mahomes: Player
    allen: Player
    tucker: Player
    walker: Player
    williams_kc: Player
    williams_buf: Player
    pit_defense: Player
    entry: Entry
    empty_entry: Entry


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def pool(session):
    """Teams, players and entries most database tests start from."""
    teams = {}
    for name, abbreviation, seed in [
        ("Kansas City Chiefs", "KC", 1),
        ("Buffalo Bills", "BUF", 2),
        ("Baltimore Ravens", "BAL", 3),
        ("Pittsburgh Steelers", "PIT", 6),
    ]:
        team = Team(name=name, abbreviation=abbreviation, conference="AFC", seed=seed, made_playoffs=True)
        session.add(team)
        teams[abbreviation] = team
    session.flush()

    def player(name, position, team, external_id=None):
        row = Player(name=name, position=position, team_id=teams[team].id, external_id=external_id)
        session.add(row)
        return row

    mahomes = player("Patrick Mahomes", "QB", "KC", external_id="123")
    allen = player("Josh Allen", "QB", "BUF")
    tucker = player("Justin Tucker", "K", "BAL")
    walker = player("Kenneth Walker III", "RB", "BAL")
    williams_kc = player("Mike Williams", "WR", "KC")
    williams_buf = player("Mike Williams", "WR", "BUF")
    pit_defense = player("Pittsburgh Steelers", "DST", "PIT")
    session.flush()

    entry = Entry(team_name="Chiefs Kingdom", participant_name="Pat Fan", email="pat@example.com", paid=True)
    empty_entry = Entry(team_name="Empty Bench", participant_name="Late Signup", email="late@example.com")
    session.add_all([entry, empty_entry])
    session.flush()

    session.add_all(
        [
            EntryPlayer(entry_id=entry.id, player_id=mahomes.id, slot="QB1"),
            EntryPlayer(entry_id=entry.id, player_id=tucker.id, slot="K"),
            EntryPlayer(entry_id=entry.id, player_id=pit_defense.id, slot="DST"),
        ]
    )
    session.commit()

    return SeededPool(
        teams=teams,
        mahomes=mahomes,
        allen=allen,
        tucker=tucker,
        walker=walker,
        williams_kc=williams_kc,
        williams_buf=williams_buf,
        pit_defense=pit_defense,
        entry=entry,
        empty_entry=empty_entry,
    )


@pytest.fixture
def make_game(session, pool):
    """Factory for games between two seeded teams."""

    def _make_game(key, round="Wildcard", home="KC", away="BUF", kickoff=None):
        game = Game(
            external_game_key=key,
            round=round,
            season_type="post",
            home_team_id=pool.teams[home].id,
            away_team_id=pool.teams[away].id,
            kickoff_at=kickoff or datetime(2025, 1, 12, 18, 0),
            is_final=True,
        )
        session.add(game)
        session.flush()
        return game

    return _make_game


@pytest.fixture
def mock_provider():
    """Build a ProviderClient that answers from a handler instead of the network.

    Usage:
        client = mock_provider("https://espn.test", handler)
    where handler(request) returns an httpx.Response. Retries never sleep.
    """

    def _mock_provider(base_url, handler, max_retries=3, provider="Test"):
        return ProviderClient(
            base_url,
            provider=provider,
            client=httpx.Client(transport=httpx.MockTransport(handler)),
            max_retries=max_retries,
            retry_delay=0.5,
            sleep=lambda seconds: None,
        )

    return _mock_provider
