"""Resolve provider stat records to internal players.

Providers disagree with our roster about names ("Kenneth Walker III" vs
"Kenneth Walker"), accents ("Ka'imi Fairbairn" vs "Kaimi Fairbairn") and,
late in the season, team codes. Resolution therefore runs an ordered chain
of strategies and stops at the first definite match:

1. ManualAliasStrategy - configured corrections for known-bad provider names
2. ExternalIdStrategy - exact provider id
3. DefenseTeamStrategy - DST records match their team's defense by team code
4. NameTeamStrategy - normalized name on the record's team
5. NameOnlyStrategy - normalized name across all teams, only if unique

Every strategy answers MATCHED, NO_MATCH or AMBIGUOUS. Ambiguity is never
resolved by picking a candidate: a record that only ever produces several
candidates is skipped and counted as ambiguous by the importer.

For beginners:

PlayerDirectory is built ONCE per import batch from the current players table.
Its lookup tables are plain dicts that nothing mutates afterwards, so the
resolver can be called for every record without touching the database again.
"""

import logging
import re
import unicodedata
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy.orm import Session

from ..config.settings import settings
from ..database.models import Player, Team
from ..roster import normalize_position

logger = logging.getLogger(__name__)

NAME_SUFFIXES = {"jr", "sr", "ii", "iii", "iv", "v"}

# Placeholder team codes for players not yet assigned to a playoff team
UNASSIGNED_TEAMS = {"DRAFT", "FA"}

__all__ = [
    "DefenseTeamStrategy",
    "ExternalIdStrategy",
    "IdentityResolver",
    "KnownPlayer",
    "ManualAliasStrategy",
    "MappingResult",
    "MatchResult",
    "MatchStatus",
    "NameOnlyStrategy",
    "NameTeamStrategy",
    "PlayerDirectory",
    "ProviderPlayer",
    "map_external_ids",
    "normalize_name",
    "normalize_position",
]


def normalize_name(value: str | None) -> str:
    """Fold a display name to a comparable key.

    Tokens are split on anything non-alphanumeric and joined without a
    separator, so "A.J. Brown", "A. J. Brown" and "AJ Brown" all give
    "ajbrown". "Kenneth Walker III" -> "kennethwalker", "José Núñez Jr." ->
    "josenunez".
    """
    if not value:
        return ""
    text = unicodedata.normalize("NFKD", value)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^A-Za-z0-9]+", " ", text).strip().lower()
    tokens = text.split()
    while len(tokens) > 1 and tokens[-1] in NAME_SUFFIXES:
        tokens.pop()
    return "".join(tokens)


class MatchStatus(str, Enum):
    MATCHED = "matched"
    NO_MATCH = "no_match"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class MatchResult:
    status: MatchStatus
    player_id: int | None = None
    candidates: int = 0
    strategy: str | None = None

    @property
    def matched(self) -> bool:
        return self.status is MatchStatus.MATCHED


NO_MATCH = MatchResult(MatchStatus.NO_MATCH)


@dataclass(frozen=True)
class KnownPlayer:
    """Snapshot of an internal player used for matching."""

    id: int
    name: str
    position: str
    team_abbr: str | None
    external_id: str | None = None


@dataclass
class PlayerDirectory:
    """Lookup tables over the known players, built once per batch."""

    players: list[KnownPlayer]
    by_external_id: dict[str, list[KnownPlayer]] = field(default_factory=dict)
    defense_by_team: dict[str, list[KnownPlayer]] = field(default_factory=dict)
    by_name_team: dict[tuple[str, str], list[KnownPlayer]] = field(default_factory=dict)
    by_name: dict[str, list[KnownPlayer]] = field(default_factory=dict)

    def __post_init__(self):
        by_external_id = defaultdict(list)
        defense_by_team = defaultdict(list)
        by_name_team = defaultdict(list)
        by_name = defaultdict(list)

        for player in self.players:
            if player.external_id:
                by_external_id[player.external_id].append(player)
            if player.position == "DST":
                if player.team_abbr:
                    defense_by_team[player.team_abbr].append(player)
                continue
            name = normalize_name(player.name)
            if not name:
                continue
            by_name[name].append(player)
            if player.team_abbr:
                by_name_team[(name, player.team_abbr)].append(player)

        self.by_external_id = dict(by_external_id)
        self.defense_by_team = dict(defense_by_team)
        self.by_name_team = dict(by_name_team)
        self.by_name = dict(by_name)

    @classmethod
    def from_session(cls, session: Session) -> "PlayerDirectory":
        rows = (
            session.query(Player.id, Player.name, Player.position, Player.external_id, Team.abbreviation)
            .join(Team, Player.team_id == Team.id)
            .all()
        )
        players = [
            KnownPlayer(
                id=player_id,
                name=name,
                position=normalize_position(position) or "",
                team_abbr=(abbreviation or "").upper() or None,
                external_id=str(external_id) if external_id else None,
            )
            for player_id, name, position, external_id, abbreviation in rows
        ]
        logger.debug(f"Built player directory with {len(players)} players")
        return cls(players)


def _pick(candidates: list[KnownPlayer] | None, strategy: str) -> MatchResult:
    candidates = candidates or []
    ids = {player.id for player in candidates}
    if not ids:
        return NO_MATCH
    if len(ids) > 1:
        return MatchResult(MatchStatus.AMBIGUOUS, candidates=len(ids), strategy=strategy)
    return MatchResult(MatchStatus.MATCHED, player_id=ids.pop(), candidates=1, strategy=strategy)


def _record_fields(record) -> tuple[str | None, str, str | None, str | None]:
    external_id = getattr(record, "external_player_id", None)
    name = normalize_name(getattr(record, "player_name", None))
    team = getattr(record, "team_abbr", None)
    position = normalize_position(getattr(record, "position", None))
    return (
        str(external_id).strip() if external_id else None,
        name,
        team.strip().upper() if team else None,
        position,
    )


class ResolverStrategy:
    """One step of the resolution chain."""

    name = "strategy"

    def resolve(self, record, directory: PlayerDirectory) -> MatchResult:
        raise NotImplementedError


class ManualAliasStrategy(ResolverStrategy):
    """Configured "Player Name|TEAM" -> external id corrections."""

    name = "alias"

    def __init__(self, aliases: dict[str, str] | None = None):
        self.aliases = {}
        for key, external_id in (aliases or {}).items():
            raw_name, _, raw_team = key.partition("|")
            self.aliases[(normalize_name(raw_name), raw_team.strip().upper())] = str(external_id)

    def resolve(self, record, directory):
        _, name, team, _ = _record_fields(record)
        if not name or not self.aliases:
            return NO_MATCH
        external_id = self.aliases.get((name, team or ""))
        if external_id is None:
            return NO_MATCH
        return _pick(directory.by_external_id.get(external_id), self.name)


class ExternalIdStrategy(ResolverStrategy):
    name = "external_id"

    def resolve(self, record, directory):
        external_id, _, _, _ = _record_fields(record)
        if not external_id:
            return NO_MATCH
        return _pick(directory.by_external_id.get(external_id), self.name)


class DefenseTeamStrategy(ResolverStrategy):
    """A team has one defense, so a DST record only needs its team code."""

    name = "defense_team"

    def resolve(self, record, directory):
        _, _, team, position = _record_fields(record)
        if position != "DST" or not team:
            return NO_MATCH
        return _pick(directory.defense_by_team.get(team), self.name)


class NameTeamStrategy(ResolverStrategy):
    name = "name_team"

    def resolve(self, record, directory):
        _, name, team, position = _record_fields(record)
        if position == "DST" or not name or not team:
            return NO_MATCH
        return _pick(directory.by_name_team.get((name, team)), self.name)


class NameOnlyStrategy(ResolverStrategy):
    """Last resort for stale team codes; accepted only when the name is unique."""

    name = "name_only"

    def resolve(self, record, directory):
        _, name, _, position = _record_fields(record)
        if position == "DST" or not name:
            return NO_MATCH
        return _pick(directory.by_name.get(name), self.name)


def default_strategies(aliases: dict[str, str] | None = None) -> list[ResolverStrategy]:
    return [
        ManualAliasStrategy(settings.identity_aliases if aliases is None else aliases),
        ExternalIdStrategy(),
        DefenseTeamStrategy(),
        NameTeamStrategy(),
        NameOnlyStrategy(),
    ]


class IdentityResolver:
    """Runs the strategy chain for each record against one PlayerDirectory.

    Usage:
        resolver = IdentityResolver(PlayerDirectory.from_session(session))
        result = resolver.resolve(record)
        if result.matched:
            ...
    """

    def __init__(self, directory: PlayerDirectory, strategies: list[ResolverStrategy] | None = None):
        self.directory = directory
        self.strategies = strategies if strategies is not None else default_strategies()

    @classmethod
    def from_session(cls, session: Session, aliases: dict[str, str] | None = None) -> "IdentityResolver":
        return cls(PlayerDirectory.from_session(session), default_strategies(aliases))

    def resolve(self, record) -> MatchResult:
        ambiguous = None
        for strategy in self.strategies:
            result = strategy.resolve(record, self.directory)
            if result.status is MatchStatus.MATCHED:
                return result
            if result.status is MatchStatus.AMBIGUOUS and ambiguous is None:
                ambiguous = result
        return ambiguous or NO_MATCH


# ========== PROVIDER ID MAPPING ==========


@dataclass(frozen=True)
class ProviderPlayer:
    """A player as listed in a provider's directory (e.g. Sleeper /players/nfl)."""

    external_id: str
    name: str | None
    position: str | None
    team_abbr: str | None


@dataclass
class MappingResult:
    """Outcome of map_external_ids. The name lists are for operator review."""

    updated: int = 0
    skipped: int = 0
    unmatched: int = 0
    ambiguous: int = 0
    dry_run: bool = False
    unmatched_names: list[str] = field(default_factory=list)
    ambiguous_names: list[str] = field(default_factory=list)


def _provider_index(provider_players: Iterable[ProviderPlayer]):
    by_key: dict[tuple, set[str]] = defaultdict(set)
    defense_by_team: dict[str, str] = {}
    for entry in provider_players:
        position = normalize_position(entry.position)
        if not position:
            continue
        team = (entry.team_abbr or "").upper()
        if position == "DST":
            if team:
                defense_by_team[team] = entry.external_id
            continue
        name = normalize_name(entry.name)
        if not name:
            continue
        by_key[(name, position, team)].add(entry.external_id)
        by_key[(name, position, "")].add(entry.external_id)
    return by_key, defense_by_team


def map_external_ids(
    session: Session,
    provider_players: Iterable[ProviderPlayer],
    dry_run: bool = False,
    force: bool = False,
    aliases: dict[str, str] | None = None,
) -> MappingResult:
    """Fill Player.external_id from a provider directory.

    Players that already have an id are left alone unless force is set.
    Defenses match by team; everyone else by (name, position, team) and then
    (name, position) across teams. Several candidates on either key means
    ambiguous, and the player is skipped. With dry_run nothing is written.
    """
    by_key, defense_by_team = _provider_index(provider_players)
    alias_strategy = ManualAliasStrategy(settings.identity_aliases if aliases is None else aliases)
    result = MappingResult(dry_run=dry_run)

    rows = session.query(Player, Team.abbreviation).join(Team, Player.team_id == Team.id).all()
    for player, abbreviation in rows:
        team = (abbreviation or "").upper()
        label = f"{player.name} ({team})"
        if (player.external_id and not force) or team in UNASSIGNED_TEAMS:
            result.skipped += 1
            continue

        position = normalize_position(player.position)
        name = normalize_name(player.name)
        match_id = alias_strategy.aliases.get((name, team))

        if match_id is None and position == "DST":
            match_id = defense_by_team.get(team)
        elif match_id is None:
            for key in ((name, position, team), (name, position, "")):
                candidates = by_key.get(key)
                if not candidates:
                    continue
                if len(candidates) == 1:
                    match_id = next(iter(candidates))
                break

            if match_id is None and candidates:
                result.ambiguous += 1
                result.ambiguous_names.append(label)
                continue

        if match_id is None:
            result.unmatched += 1
            result.unmatched_names.append(label)
            continue

        if not dry_run:
            player.external_id = match_id
        result.updated += 1

    if not dry_run:
        session.flush()
    logger.info(
        f"External id mapping {'dry run' if dry_run else 'complete'}: {result.updated} updated, "
        f"{result.skipped} skipped, {result.unmatched} unmatched, {result.ambiguous} ambiguous"
    )
    return result
