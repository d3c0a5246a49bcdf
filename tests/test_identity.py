"""
Tests for provider record -> internal player resolution.

Most cases use an in-memory PlayerDirectory so the strategy chain can be
exercised without a database; the provider id mapping tests use the seeded
pool.
"""

import pytest

from playoff_pool.data.identity import (
    IdentityResolver,
    KnownPlayer,
    MatchStatus,
    PlayerDirectory,
    ProviderPlayer,
    default_strategies,
    map_external_ids,
    normalize_name,
)
from playoff_pool.data.records import StatRecord


def record(**fields) -> StatRecord:
    return StatRecord(game_key="G1", round="Wildcard", passing_yards=1, **fields)


@pytest.fixture
def directory():
    return PlayerDirectory(
        [
            KnownPlayer(1, "Patrick Mahomes", "QB", "KC", external_id="123"),
            KnownPlayer(2, "Mike Williams", "WR", "KC"),
            KnownPlayer(3, "Mike Williams", "WR", "BUF"),
            KnownPlayer(4, "Kenneth Walker III", "RB", "SEA"),
            KnownPlayer(5, "Pittsburgh Steelers", "DST", "PIT"),
            KnownPlayer(6, "Ka'imi Fairbairn", "K", "HOU"),
            KnownPlayer(7, "Amon-Ra St. Brown", "WR", "DET"),
        ]
    )


@pytest.fixture
def resolver(directory):
    return IdentityResolver(directory, default_strategies(aliases={}))


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Kenneth Walker III", "kennethwalker"),
        ("Amon-Ra St. Brown", "amonrastbrown"),
        ("José Núñez Jr.", "josenunez"),
        ("Ka'imi Fairbairn", "kaimifairbairn"),
        ("A.J. Brown", "ajbrown"),
        ("A. J. Brown", "ajbrown"),
        ("AJ Brown", "ajbrown"),
        ("  PATRICK   MAHOMES II ", "patrickmahomes"),
        ("Jr", "jr"),
        (None, ""),
    ],
)
def test_normalize_name(raw, expected):
    assert normalize_name(raw) == expected


def test_external_id_wins_over_name(resolver):
    """An exact provider id match is accepted even when the name disagrees."""
    result = resolver.resolve(record(external_player_id="123", player_name="Pat Mahomes II", team_abbr="KC"))
    assert result.matched
    assert result.player_id == 1
    assert result.strategy == "external_id"


def test_name_and_team_match(resolver):
    result = resolver.resolve(record(player_name="Mike Williams", team_abbr="BUF"))
    assert result.matched
    assert result.player_id == 3
    assert result.strategy == "name_team"


def test_same_name_on_two_teams_without_team_is_ambiguous(resolver):
    """Two candidates must never be narrowed down to one by guessing."""
    result = resolver.resolve(record(player_name="Mike Williams"))
    assert result.status is MatchStatus.AMBIGUOUS
    assert result.player_id is None
    assert result.candidates == 2


def test_later_strategy_can_settle_an_earlier_ambiguity():
    """A duplicated provider id is ambiguous, but name and team still pin one player."""
    directory = PlayerDirectory(
        [
            KnownPlayer(1, "Mike Williams", "WR", "KC", external_id="555"),
            KnownPlayer(2, "Mike Evans", "WR", "TB", external_id="555"),
        ]
    )
    resolver = IdentityResolver(directory, default_strategies(aliases={}))

    settled = resolver.resolve(record(external_player_id="555", player_name="Mike Evans", team_abbr="TB"))
    assert settled.matched
    assert settled.player_id == 2
    assert settled.strategy == "name_team"

    unsettled = resolver.resolve(record(external_player_id="555"))
    assert unsettled.status is MatchStatus.AMBIGUOUS
    assert unsettled.strategy == "external_id"


def test_stale_team_code_falls_back_to_unique_name(resolver):
    result = resolver.resolve(record(player_name="Patrick Mahomes", team_abbr="LV"))
    assert result.matched
    assert result.player_id == 1
    assert result.strategy == "name_only"


def test_suffixes_and_punctuation_are_ignored(resolver):
    assert resolver.resolve(record(player_name="Kenneth Walker", team_abbr="SEA")).player_id == 4
    assert resolver.resolve(record(player_name="Kaimi Fairbairn", team_abbr="HOU")).player_id == 6
    assert resolver.resolve(record(player_name="Ka'imi Fairbairn", team_abbr="HOU")).player_id == 6
    assert resolver.resolve(record(player_name="Amon-Ra St Brown", team_abbr="DET")).player_id == 7


def test_defense_matches_by_team(resolver):
    result = resolver.resolve(record(team_abbr="PIT", position="DEF"))
    assert result.matched
    assert result.player_id == 5
    assert result.strategy == "defense_team"


def test_defense_never_matches_by_name(resolver):
    """A DST record for a team without a defense on file stays unmatched."""
    result = resolver.resolve(record(player_name="Pittsburgh Steelers", team_abbr="CLE", position="DST"))
    assert result.status is MatchStatus.NO_MATCH


def test_unknown_player_is_no_match(resolver):
    result = resolver.resolve(record(player_name="Nobody Special", team_abbr="KC", external_player_id="999"))
    assert result.status is MatchStatus.NO_MATCH
    assert not result.matched


def test_manual_alias_redirects_to_external_id(directory):
    resolver = IdentityResolver(directory, default_strategies(aliases={"Pat Mahomes|KC": "123"}))
    result = resolver.resolve(record(player_name="Pat Mahomes", team_abbr="KC"))
    assert result.matched
    assert result.player_id == 1
    assert result.strategy == "alias"


def test_directory_from_session(session, pool):
    directory = PlayerDirectory.from_session(session)
    assert directory.by_external_id["123"][0].id == pool.mahomes.id
    assert directory.defense_by_team["PIT"][0].id == pool.pit_defense.id
    assert len(directory.by_name["mike williams"]) == 2


# ========== PROVIDER ID MAPPING ==========


def provider_directory():
    return [
        ProviderPlayer("4046", "Patrick Mahomes", "QB", "KC"),
        ProviderPlayer("17", "Justin Tucker", "K", "BAL"),
        ProviderPlayer("4199", "Kenneth Walker", "RB", "BAL"),
        ProviderPlayer("PIT", None, "DEF", "PIT"),
        ProviderPlayer("w1", "Mike Williams", "WR", None),
        ProviderPlayer("w2", "Mike Williams", "WR", None),
        ProviderPlayer("5849", "Josh Allen", "QB", "BUF"),
    ]


def test_map_external_ids_skips_mapped_players(session, pool):
    result = map_external_ids(session, provider_directory(), aliases={})

    assert result.skipped == 1  # Mahomes already has "123"
    assert pool.mahomes.external_id == "123"
    assert pool.tucker.external_id == "17"
    assert pool.walker.external_id == "4199"
    assert pool.allen.external_id == "5849"
    assert pool.pit_defense.external_id == "PIT"
    assert result.updated == 4


def test_map_external_ids_leaves_ambiguous_names_alone(session, pool):
    result = map_external_ids(session, provider_directory(), aliases={})

    assert result.ambiguous == 2
    assert pool.williams_kc.external_id is None
    assert pool.williams_buf.external_id is None
    assert "Mike Williams (KC)" in result.ambiguous_names


def test_map_external_ids_force_and_dry_run(session, pool):
    dry = map_external_ids(session, provider_directory(), dry_run=True, force=True, aliases={})
    assert dry.dry_run
    assert dry.updated == 5
    assert pool.mahomes.external_id == "123"
    assert pool.tucker.external_id is None

    forced = map_external_ids(session, provider_directory(), force=True, aliases={})
    assert forced.updated == 5
    assert pool.mahomes.external_id == "4046"


def test_map_external_ids_reports_unmatched(session, pool):
    result = map_external_ids(session, [ProviderPlayer("1", "Someone Else", "QB", "KC")], aliases={})
    assert result.updated == 0
    assert result.unmatched == 6
    assert "Justin Tucker (BAL)" in result.unmatched_names
