"""
Tests for playoff round helpers and roster rules.
"""

import pytest

from playoff_pool.roster import (
    ROSTER_SIZE,
    RosterPlayer,
    normalize_position,
    sort_roster_by_slot,
    validate_roster,
)
from playoff_pool.rounds import (
    PlayoffRound,
    format_round_label_short,
    parse_round,
    playoff_week_for_round,
    round_from_week,
    sort_round_labels,
)


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Wildcard", PlayoffRound.WILDCARD),
        ("wild-card", PlayoffRound.WILDCARD),
        ("WC", PlayoffRound.WILDCARD),
        ("divisional", PlayoffRound.DIVISIONAL),
        ("Conference", PlayoffRound.CONFERENCE),
        ("championship", PlayoffRound.CONFERENCE),
        ("Super Bowl", PlayoffRound.SUPER_BOWL),
        ("super_bowl", PlayoffRound.SUPER_BOWL),
    ],
)
def test_parse_round(label, expected):
    assert parse_round(label) is expected


def test_parse_round_rejects_other_labels():
    with pytest.raises(ValueError, match="Unknown playoff round"):
        parse_round("Week 18")


@pytest.mark.parametrize(
    "week,expected",
    [(19, PlayoffRound.WILDCARD), (20, PlayoffRound.DIVISIONAL), (21, PlayoffRound.CONFERENCE), (22, PlayoffRound.SUPER_BOWL)],
)
def test_round_from_week(week, expected):
    assert round_from_week(week) is expected


def test_espn_postseason_weeks():
    assert [playoff_week_for_round(r) for r in PlayoffRound] == [1, 2, 3, 4]
    assert playoff_week_for_round("SuperBowl") == 4


def test_round_labels_sort_weeks_then_playoffs():
    labels = ["SuperBowl", "Week 10", "Wildcard", "Week 2", "Exhibition", "Week 2"]
    assert sort_round_labels(labels) == ["Week 2", "Week 10", "Wildcard", "SuperBowl", "Exhibition"]
    assert format_round_label_short("Week 7") == "WK7"
    assert format_round_label_short("Divisional") == "DIV"


@pytest.mark.parametrize(
    "raw,expected",
    [("DEF", "DST"), ("d/st", "DST"), ("PK", "K"), (" wr ", "WR"), ("", None), (None, None)],
)
def test_normalize_position(raw, expected):
    assert normalize_position(raw) == expected


def full_roster():
    positions = ["QB"] * 4 + ["RB"] * 3 + ["WR"] * 3 + ["TE", "WR", "K", "DST"]
    slots = ["QB1", "QB2", "QB3", "QB4", "RB1", "RB2", "RB3", "WR1", "WR2", "WR3", "TE", "FLEX", "K", "DST"]
    return [RosterPlayer(player_id=i + 1, position=p, team_id=i + 1, slot=s) for i, (p, s) in enumerate(zip(positions, slots))]


def test_valid_roster():
    roster = full_roster()
    assert len(roster) == ROSTER_SIZE
    assert validate_roster(roster).valid


def test_roster_problems_are_listed():
    roster = full_roster()
    roster[1].team_id = roster[0].team_id
    roster[-1].position = "WR"

    result = validate_roster(roster)

    assert not result.valid
    assert "Only one player per NFL playoff team is allowed." in result.errors
    assert "Exactly 1 defense is required." in result.errors


def test_short_roster():
    result = validate_roster(full_roster()[:3])
    assert f"Roster must include exactly {ROSTER_SIZE} players." in result.errors


def test_sort_roster_by_slot():
    shuffled = [{"slot": "DST"}, {"slot": "QB2"}, {"slot": "BENCH"}, {"slot": "QB1"}, {"slot": "FLEX"}]
    assert [item["slot"] for item in sort_roster_by_slot(shuffled)] == ["QB1", "QB2", "FLEX", "DST", "BENCH"]
