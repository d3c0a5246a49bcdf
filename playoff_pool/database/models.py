"""SQLAlchemy database models for the playoff pool.

This file defines the database schema using SQLAlchemy ORM (Object-Relational Mapping).
It covers the data the scoring pipeline reads and writes:

1. NFL reference data: Teams, Players, Games
2. Imported statistics: one PlayerGameStat row per player per game
3. Pool data: Entries and their 14 roster slots, with a cached point total

For beginners:

SQLAlchemy ORM: A Python toolkit that lets you work with databases using Python classes
instead of raw SQL. Each class represents a database table, and instances represent rows.

Derived vs authoritative data: Entry.total_points_cached is DERIVED. It can always be
rebuilt from player_game_stats plus the override columns, which is exactly what
playoff_pool.scoring.recalculate does after every import.

Design Patterns:
- Base declarative class for all models
- Consistent primary key and timestamp patterns
- Unique constraints for every natural key the importer upserts on
"""

# SQLAlchemy imports for database column types and ORM functionality
from sqlalchemy import Boolean  # True/False values (made_playoffs, is_final)
from sqlalchemy import Column  # Defines table columns with types and constraints
from sqlalchemy import DateTime  # Full timestamp values (kickoff_at, created_at)
from sqlalchemy import Float  # Point values (overrides, cached totals)
from sqlalchemy import ForeignKey  # References to other tables' primary keys
from sqlalchemy import Index  # Database indexes for query performance
from sqlalchemy import Integer  # Whole numbers (id, yards, touchdowns)
from sqlalchemy import String  # Text fields with length limits (name, position)
from sqlalchemy import Text  # Unbounded text (notes)
from sqlalchemy import UniqueConstraint  # Ensures no duplicate combinations exist
from sqlalchemy.orm import declarative_base  # Base class for all models
from sqlalchemy.orm import relationship  # Defines how tables are related
from sqlalchemy.sql import func  # SQL functions like now()

# Base class for all database models
Base = declarative_base()

# Raw counting columns on PlayerGameStat, in rule-sheet order.
# The importer writes all of them on every upsert (full replace, never merge).
STAT_COLUMNS = (
    "passing_yards",
    "passing_tds",
    "passing_two_pt",
    "rushing_yards",
    "rushing_tds",
    "rushing_two_pt",
    "receiving_yards",
    "receiving_tds",
    "receiving_two_pt",
    "receptions",
    "fg_made_0_39",
    "fg_made_40_49",
    "fg_made_50_59",
    "fg_made_60_plus",
    "xp_made",
    "def_int",
    "sacks",
    "safeties",
    "def_fumble_recoveries",
    "def_st_tds",
    "fum2pk",
    "fum2pt",
    "int2pk",
    "int2pt",
)


class Team(Base):
    """NFL team model.

    Teams are owned by commissioner tooling: they are created before the
    playoffs and flagged as they make or leave the bracket. Players and games
    both reference teams.

    Design Decisions:
    - Uses abbreviation as natural key ("KC", "PIT") because every stats
      provider identifies teams that way
    - Separate home/away game relationships for clarity

    For beginners:

    Primary Key: A unique identifier (id) that SQLAlchemy auto-generates.

    Relationships: team.players gives every player on this team's roster,
    team.home_games / team.away_games the games it hosted or visited.
    """

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)

    # Team identifiers
    name = Column(String(60), nullable=False)  # "Pittsburgh Steelers"
    abbreviation = Column(String(5), unique=True, nullable=False, index=True)  # "PIT"
    conference = Column(String(3), nullable=False)  # "AFC" or "NFC"

    # Playoff bracket state
    seed = Column(Integer)
    made_playoffs = Column(Boolean, nullable=False, default=False)
    eliminated_round = Column(String(20))  # "Divisional", etc. None while alive

    home_games = relationship(
        "Game",
        foreign_keys="[Game.home_team_id]",
        back_populates="home_team",
    )
    away_games = relationship("Game", foreign_keys="[Game.away_team_id]", back_populates="away_team")
    players = relationship("Player", back_populates="team")

    # Automatic timestamps for audit trail
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class Player(Base):
    """Draftable player model.

    One row per draftable fantasy asset. A team's defense/special teams unit
    is a Player too, with position "DST" (at most one per team).

    Key Design Features:
    - external_id links the player to a stats provider (Sleeper or ESPN id);
      nullable because the commissioner may add players before mapping them
    - playoff_override_points is the SEASON-LEVEL override: when it is not
      None it replaces the player's summed per-game points everywhere

    For beginners:

    Nullable vs zero: playoff_override_points = None means "no override".
    An override of 0.0 is a real override that zeroes the player out.
    """

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(100), nullable=False, index=True)  # "Patrick Mahomes"
    position = Column(String(5), nullable=False, index=True)  # QB, RB, WR, TE, K, DST

    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    team = relationship("Team", back_populates="players")

    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text)

    # Provider identifier (Sleeper player_id or ESPN athlete id)
    external_id = Column(String(40), index=True)

    # Season-level manual override (None = computed from stats)
    playoff_override_points = Column(Float)

    stats = relationship("PlayerGameStat", back_populates="player", cascade="all, delete-orphan")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        # Speed up position + team filtering ("the PIT defense")
        Index("idx_player_position_team", "position", "team_id"),
    )


class Game(Base):
    """NFL game model.

    Games are the temporal context for every stat row. They are created
    either by the commissioner or by the importer, which upserts on
    external_game_key so re-running a fetch never duplicates a game.

    For beginners:

    Multiple Foreign Keys: A game involves two teams, so there are separate
    home_team_id and away_team_id columns and the relationship() calls name
    which one they follow.

    Round vs week: postseason games carry a round ("Wildcard" ...);
    regular-season games carry a week number and no round.
    """

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)

    round = Column(String(20), index=True)  # Wildcard, Divisional, Conference, SuperBowl
    season_type = Column(String(10), nullable=False, default="post")  # "regular" or "post"
    week = Column(Integer)

    home_team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    home_team = relationship("Team", foreign_keys=[home_team_id], back_populates="home_games")
    away_team = relationship("Team", foreign_keys=[away_team_id], back_populates="away_games")

    kickoff_at = Column(DateTime, nullable=False)
    is_final = Column(Boolean, nullable=False, default=False)

    # Provider game key (ESPN event id, "sleeper-2024-post-week-19", ...)
    external_game_key = Column(String(80), unique=True, index=True)

    home_score = Column(Integer)
    away_score = Column(Integer)

    player_stats = relationship("PlayerGameStat", back_populates="game", cascade="all, delete-orphan")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class PlayerGameStat(Base):
    """Raw counting stats for one player in one game.

    Invariant: at most one row per (player, game), enforced by the unique
    constraint below AND by the importer's read-then-write upsert.

    manual_override_points is the PER-GAME override. When set it replaces this
    row's computed points only; the player's other games are unaffected.
    """

    __tablename__ = "player_game_stats"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)

    player = relationship("Player", back_populates="stats")
    game = relationship("Game", back_populates="player_stats")

    # Passing
    passing_yards = Column(Integer, nullable=False, default=0)
    passing_tds = Column(Integer, nullable=False, default=0)
    passing_two_pt = Column(Integer, nullable=False, default=0)

    # Rushing
    rushing_yards = Column(Integer, nullable=False, default=0)
    rushing_tds = Column(Integer, nullable=False, default=0)
    rushing_two_pt = Column(Integer, nullable=False, default=0)

    # Receiving
    receiving_yards = Column(Integer, nullable=False, default=0)
    receiving_tds = Column(Integer, nullable=False, default=0)
    receiving_two_pt = Column(Integer, nullable=False, default=0)
    receptions = Column(Integer, nullable=False, default=0)

    # Kicking (field goals bucketed by distance)
    fg_made_0_39 = Column(Integer, nullable=False, default=0)
    fg_made_40_49 = Column(Integer, nullable=False, default=0)
    fg_made_50_59 = Column(Integer, nullable=False, default=0)
    fg_made_60_plus = Column(Integer, nullable=False, default=0)
    xp_made = Column(Integer, nullable=False, default=0)

    # Defense / special teams
    def_int = Column(Integer, nullable=False, default=0)
    sacks = Column(Integer, nullable=False, default=0)
    safeties = Column(Integer, nullable=False, default=0)
    def_fumble_recoveries = Column(Integer, nullable=False, default=0)
    def_st_tds = Column(Integer, nullable=False, default=0)
    fum2pk = Column(Integer, nullable=False, default=0)  # fumble recovered, 2pt return on kick
    fum2pt = Column(Integer, nullable=False, default=0)  # fumble recovered, 2pt return on try
    int2pk = Column(Integer, nullable=False, default=0)  # interception, 2pt return on kick
    int2pt = Column(Integer, nullable=False, default=0)  # interception, 2pt return on try

    # Per-game manual override (None = computed from the columns above)
    manual_override_points = Column(Float)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("player_id", "game_id", name="uq_player_game_stats"),)


class Entry(Base):
    """A participant's pool entry.

    total_points_cached is the only materialized aggregate in the schema.
    It is eventually consistent: every import ends with a recalculation that
    rewrites it for every entry.
    """

    __tablename__ = "entries"

    id = Column(Integer, primary_key=True, index=True)
    team_name = Column(String(100), nullable=False)
    participant_name = Column(String(100), nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    total_points_cached = Column(Float, nullable=False, default=0.0)

    roster = relationship("EntryPlayer", back_populates="entry", cascade="all, delete-orphan")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class EntryPlayer(Base):
    """One roster slot assignment: (entry, player, slot label)."""

    __tablename__ = "entry_players"

    id = Column(Integer, primary_key=True, index=True)
    entry_id = Column(Integer, ForeignKey("entries.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    slot = Column(String(5), nullable=False)  # QB1..QB4, RB1..RB3, WR1..WR3, FLEX, TE, K, DST
    locked = Column(Boolean, nullable=False, default=False)

    entry = relationship("Entry", back_populates="roster")
    player = relationship("Player")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("entry_id", "slot", name="uq_entry_slot"),
        UniqueConstraint("entry_id", "player_id", name="uq_entry_player"),
    )
