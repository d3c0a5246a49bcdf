"""Database package initialization."""

from .connection import SessionLocal, engine, get_session, get_session_context
from .models import STAT_COLUMNS, Base, Entry, EntryPlayer, Game, Player, PlayerGameStat, Team

__all__ = [
    "STAT_COLUMNS",
    "Base",
    "Entry",
    "EntryPlayer",
    "Game",
    "Player",
    "PlayerGameStat",
    "SessionLocal",
    "Team",
    "engine",
    "get_session",
    "get_session_context",
]
