"""
Tests for entry total recalculation and the two override levels.
"""

from datetime import datetime

from playoff_pool.database.models import Entry, PlayerGameStat
from playoff_pool.scoring import effective_player_totals, player_points_by_game, recalculate_entry_totals


def add_stat(session, player, game, **columns):
    row = PlayerGameStat(player_id=player.id, game_id=game.id, **columns)
    session.add(row)
    session.flush()
    return row


def test_entry_total_sums_roster(session, pool, make_game):
    wildcard = make_game("G1")
    divisional = make_game("G2", round="Divisional")
    add_stat(session, pool.mahomes, wildcard, passing_yards=305, passing_tds=3)
    add_stat(session, pool.mahomes, divisional, passing_tds=1)
    add_stat(session, pool.tucker, wildcard, fg_made_50_59=1, xp_made=2)
    add_stat(session, pool.allen, wildcard, passing_tds=4)  # not rostered

    totals = recalculate_entry_totals(session)

    assert totals[pool.entry.id] == 33 + 6 + 5 + 2
    assert session.get(Entry, pool.entry.id).total_points_cached == 46


def test_empty_roster_totals_zero(session, pool, make_game):
    pool.empty_entry.total_points_cached = 99.0
    session.flush()

    totals = recalculate_entry_totals(session)

    assert totals[pool.empty_entry.id] == 0
    assert session.get(Entry, pool.empty_entry.id).total_points_cached == 0


def test_season_override_replaces_computed_points(session, pool, make_game):
    add_stat(session, pool.mahomes, make_game("G1"), passing_yards=305, passing_tds=3)
    pool.mahomes.playoff_override_points = 10.0
    session.flush()

    assert recalculate_entry_totals(session)[pool.entry.id] == 10.0


def test_zero_season_override_zeroes_player(session, pool, make_game):
    add_stat(session, pool.mahomes, make_game("G1"), passing_tds=3)
    pool.mahomes.playoff_override_points = 0.0
    session.flush()

    assert recalculate_entry_totals(session)[pool.entry.id] == 0


def test_season_override_without_stats_counts(session, pool):
    pool.pit_defense.playoff_override_points = 12.0
    session.flush()

    assert recalculate_entry_totals(session)[pool.entry.id] == 12.0
    assert effective_player_totals(session) == {pool.pit_defense.id: 12.0}


def test_per_game_override_affects_only_its_game(session, pool, make_game):
    first = add_stat(session, pool.mahomes, make_game("G1"), passing_tds=3)
    add_stat(session, pool.mahomes, make_game("G2", round="Divisional"), passing_tds=2)
    first.manual_override_points = 1.5
    session.flush()

    assert recalculate_entry_totals(session)[pool.entry.id] == 1.5 + 12


def test_totals_are_rounded_to_cents(session, pool, make_game):
    row = add_stat(session, pool.mahomes, make_game("G1"))
    row.manual_override_points = 1.0 / 3.0
    pool.tucker.playoff_override_points = 2.0 / 3.0
    pool.pit_defense.playoff_override_points = 0.111
    session.flush()

    assert recalculate_entry_totals(session)[pool.entry.id] == round(1.0 / 3.0 + 2.0 / 3.0 + 0.111, 2) == 1.11


def test_recalculation_is_repeatable(session, pool, make_game):
    add_stat(session, pool.mahomes, make_game("G1"), passing_tds=3)
    assert recalculate_entry_totals(session) == recalculate_entry_totals(session)


def test_player_points_by_game_orders_by_kickoff(session, pool, make_game):
    late = make_game("G2", round="Divisional", kickoff=datetime(2025, 1, 19, 18, 0))
    early = make_game("G1", kickoff=datetime(2025, 1, 12, 18, 0))
    add_stat(session, pool.mahomes, late, passing_tds=1)
    override = add_stat(session, pool.mahomes, early, passing_tds=2, manual_override_points=4.0)

    games = player_points_by_game(session, pool.mahomes)

    assert [game.round for game in games] == ["Wildcard", "Divisional"]
    assert games[0].stat_id == override.id
    assert games[0].breakdown.is_manual_override
    assert games[0].breakdown.total_points == 4.0
    assert games[1].breakdown.total_points == 6


def test_unflushed_override_changes_are_picked_up(session, pool, make_game):
    add_stat(session, pool.mahomes, make_game("G1"), passing_yards=305, passing_tds=3)
    session.commit()

    pool.mahomes.playoff_override_points = 10.0
    assert recalculate_entry_totals(session)[pool.entry.id] == 10.0

    pool.mahomes.playoff_override_points = None
    assert recalculate_entry_totals(session)[pool.entry.id] == 33
    assert effective_player_totals(session)[pool.mahomes.id] == 33
