"""
Tests for the stat importer (upsert and replace modes).

These exercise the whole pipeline against the seeded pool: validation,
game upserts, identity resolution, stat row upserts and the entry total
recalculation that ends every import.
"""

import pytest

from playoff_pool.data.importer import StatImporter, import_stats, replace_stats
from playoff_pool.database.models import STAT_COLUMNS, Entry, Game, PlayerGameStat
from playoff_pool.exceptions import StatValidationError
from playoff_pool.scoring import player_points_by_game

MAHOMES_WILDCARD = {
    "external_player_id": "123",
    "passing_yards": 305,
    "passing_tds": 3,
    "game_key": "G1",
    "round": "Wildcard",
}
PIT_DEFENSE = {"team_abbr": "PIT", "position": "DST", "sacks": 4, "interceptions": 2, "game_key": "G2", "round": "Wildcard"}


def stat_rows(session, player):
    return session.query(PlayerGameStat).filter(PlayerGameStat.player_id == player.id).all()


def test_quarterback_line_scores_33(session, pool):
    result = import_stats(session, [MAHOMES_WILDCARD], aliases={})

    assert result.imported == 1
    assert result.games_created == 1
    game = session.query(Game).filter(Game.external_game_key == "G1").one()
    assert game.round == "Wildcard"

    games = player_points_by_game(session, pool.mahomes)
    assert len(games) == 1
    assert games[0].breakdown.total_points == 33
    assert [(item.label, item.stat, item.points) for item in games[0].breakdown.items] == [
        ("Passing Yards", 305, 15),
        ("Passing TD", 3, 18),
    ]


def test_defense_line_scores_8(session, pool):
    result = import_stats(session, [PIT_DEFENSE], aliases={})

    assert result.imported == 1
    [row] = stat_rows(session, pool.pit_defense)
    assert (row.sacks, row.def_int) == (4, 2)
    assert player_points_by_game(session, pool.pit_defense)[0].breakdown.total_points == 8


def test_reimport_is_idempotent(session, pool):
    import_stats(session, [MAHOMES_WILDCARD, PIT_DEFENSE], aliases={})
    first_total = session.get(Entry, pool.entry.id).total_points_cached

    result = import_stats(session, [MAHOMES_WILDCARD, PIT_DEFENSE], aliases={})

    assert result.games_created == 0
    assert result.games_updated == 2
    assert len(stat_rows(session, pool.mahomes)) == 1
    assert session.query(PlayerGameStat).count() == 2
    assert session.query(Game).count() == 2
    assert session.get(Entry, pool.entry.id).total_points_cached == first_total == 41


def test_duplicate_records_in_one_batch_keep_the_last(session, pool):
    corrected = {**MAHOMES_WILDCARD, "passing_tds": 4}
    result = import_stats(session, [MAHOMES_WILDCARD, corrected], aliases={})

    assert result.imported == 1
    assert result.duplicates == 1
    assert result.skipped == 0
    [row] = stat_rows(session, pool.mahomes)
    assert row.passing_tds == 4


def test_upsert_replaces_every_column(session, pool):
    """A re-import overwrites stale columns with the new record's zeros."""
    import_stats(session, [{**MAHOMES_WILDCARD, "rushing_yards": 40, "rushing_tds": 1}], aliases={})
    import_stats(session, [MAHOMES_WILDCARD], aliases={})

    [row] = stat_rows(session, pool.mahomes)
    assert row.rushing_yards == 0
    assert row.rushing_tds == 0
    assert row.passing_yards == 305


def test_per_game_override_survives_reimport(session, pool):
    import_stats(session, [MAHOMES_WILDCARD], aliases={})
    [row] = stat_rows(session, pool.mahomes)
    row.manual_override_points = 50.0
    session.flush()

    import_stats(session, [{**MAHOMES_WILDCARD, "passing_tds": 1}], aliases={})

    [row] = stat_rows(session, pool.mahomes)
    assert row.passing_tds == 1
    assert row.manual_override_points == 50.0
    assert session.get(Entry, pool.entry.id).total_points_cached == 50.0


def test_skips_are_counted_not_raised(session, pool):
    records = [
        MAHOMES_WILDCARD,
        {"player_name": "Nobody Special", "team_abbr": "KC", "game_key": "G1", "round": "Wildcard", "receptions": 3},
        {"player_name": "Mike Williams", "game_key": "G1", "round": "Wildcard", "receptions": 5},
        {"external_player_id": "123", "game_key": "G1", "round": "Wildcard", "passing_yards": 0.4},
    ]
    result = import_stats(session, records, aliases={})

    assert result.received == 4
    assert result.imported == 1
    assert result.unmatched_players == 1
    assert result.ambiguous_players == 1
    assert result.skipped_empty == 1
    assert result.skipped == 3
    assert result.to_dict()["skipped"] == 3


def test_all_empty_batch_creates_no_games(session, pool):
    result = import_stats(session, [{**MAHOMES_WILDCARD, "passing_yards": 0, "passing_tds": 0}], aliases={})
    assert result.skipped_empty == 1
    assert session.query(Game).count() == 0
    assert result.entries_recalculated == 2


def test_invalid_batch_writes_nothing(session, pool):
    records = [MAHOMES_WILDCARD, {"external_player_id": "123", "round": "Wildcard", "passing_tds": 1}]

    with pytest.raises(StatValidationError) as exc_info:
        import_stats(session, records, aliases={})

    assert "record 1" in exc_info.value.errors[0]
    assert "game_key" in exc_info.value.errors[0]
    assert session.query(Game).count() == 0
    assert session.query(PlayerGameStat).count() == 0


@pytest.mark.parametrize(
    "bad",
    [
        {"round": "Preseason"},
        {"position": "XX"},
        {"passing_tds": -1},
        {"round": None, "week": None},
        {"passing_yards": float("inf")},
    ],
)
def test_bad_values_are_rejected(session, pool, bad):
    with pytest.raises(StatValidationError):
        import_stats(session, [{**MAHOMES_WILDCARD, **bad}], aliases={})


def test_negative_yardage_is_stored_and_scores_zero(session, pool):
    result = import_stats(
        session,
        [{"external_player_id": "123", "rushing_yards": -3, "game_key": "G1", "round": "Wildcard"}],
        aliases={},
    )
    assert result.imported == 1
    [row] = stat_rows(session, pool.mahomes)
    assert row.rushing_yards == -3
    assert session.get(Entry, pool.entry.id).total_points_cached == 0


# ========== REPLACE MODE ==========


def test_replace_is_a_full_replace(session, pool):
    import_stats(session, [MAHOMES_WILDCARD, PIT_DEFENSE], aliases={})

    result = replace_stats(session, [PIT_DEFENSE], aliases={})

    assert result.rows_deleted == 2
    assert stat_rows(session, pool.mahomes) == []
    assert len(stat_rows(session, pool.pit_defense)) == 1
    assert session.get(Entry, pool.entry.id).total_points_cached == 8


def test_replace_with_empty_batch_leaves_overrides_only(session, pool):
    import_stats(session, [MAHOMES_WILDCARD, PIT_DEFENSE], aliases={})
    pool.tucker.playoff_override_points = 7.5
    session.flush()

    result = replace_stats(session, [], aliases={})

    assert result.received == 0
    assert session.query(PlayerGameStat).count() == 0
    assert result.entries_recalculated == 2
    assert session.get(Entry, pool.entry.id).total_points_cached == 7.5
    assert session.get(Entry, pool.empty_entry.id).total_points_cached == 0


def test_replace_validation_failure_deletes_nothing(session, pool):
    import_stats(session, [MAHOMES_WILDCARD], aliases={})

    with pytest.raises(StatValidationError):
        replace_stats(session, [PIT_DEFENSE, {"game_key": "", "round": "Wildcard"}], aliases={})

    assert session.query(PlayerGameStat).count() == 1


def test_importer_uses_aliases(session, pool):
    importer = StatImporter(aliases={"Pat Mahomes|KC": "123"})
    result = importer.import_stats(
        session,
        [{"player_name": "Pat Mahomes", "team_abbr": "KC", "game_key": "G1", "round": "Wildcard", "passing_tds": 1}],
    )
    assert result.imported == 1
    assert len(stat_rows(session, pool.mahomes)) == 1


def test_every_column_is_written(session, pool):
    record = {"external_player_id": "123", "game_key": "G1", "round": "Wildcard"}
    record.update({field: 1 for field in [
        "passing_yards", "passing_tds", "passing_two_pt", "rushing_yards", "rushing_tds", "rushing_two_pt",
        "receiving_yards", "receiving_tds", "receiving_two_pt", "receptions", "fg0_39", "fg40_49", "fg50_59",
        "fg60_plus", "xp_made", "interceptions", "sacks", "safeties", "fumble_recoveries", "return_tds",
        "fum2pk", "fum2pt", "int2pk", "int2pt",
    ]})
    import_stats(session, [record], aliases={})

    [row] = stat_rows(session, pool.mahomes)
    assert all(getattr(row, column) == 1 for column in STAT_COLUMNS)
