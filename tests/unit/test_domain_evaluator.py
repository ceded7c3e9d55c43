"""Tests for district tallies and level objectives."""

from __future__ import annotations

import pytest

from redistricting.domain.enums import Faction
from redistricting.domain.evaluator import district_winner, evaluate_outcome, tally_district
from redistricting.domain.models import DistrictID, Grid, Level, Partition, WinCondition
from redistricting.domain.rules_config import RulesConfig, ScoringRules
from redistricting.domain.validator import validate_partition

HALVES = Partition.from_rows([[1] * 4, [1] * 4, [2] * 4, [2] * 4])
RED_TIES = RulesConfig(scoring=ScoringRules(tie_winner=Faction.RED))


def _level(rows: list[str], wins_needed: int = 2) -> Level:
    return Level(
        grid=Grid.from_rows(rows),
        district_count=2,
        win_condition=WinCondition(target_faction=Faction.BLUE, min_districts_won=wins_needed),
        min_district_size=8,
        max_district_size=8,
    )


def _evaluate(level: Level, partition: Partition, rules: RulesConfig | None = None):
    report = validate_partition(
        level.grid,
        partition,
        district_count=level.district_count,
        min_size=level.min_district_size,
        max_size=level.max_district_size,
    )
    if rules is None:
        return evaluate_outcome(level, partition, report)
    return evaluate_outcome(level, partition, report, rules=rules)


class TestDistrictWinner:
    def test_strict_majority(self):
        assert district_winner(5, 3, tie_winner=Faction.RED) is Faction.BLUE
        assert district_winner(1, 4, tie_winner=Faction.BLUE) is Faction.RED

    @pytest.mark.parametrize("tie_winner", list(Faction))
    def test_tie_goes_to_configured_faction(self, tie_winner):
        assert district_winner(4, 4, tie_winner=tie_winner) is tie_winner


class TestEvaluateOutcome:
    def test_five_three_majorities_win_both_districts(self):
        level = _level(["BBBR", "BBRR", "BBBR", "BBRR"])
        outcome = _evaluate(level, HALVES)

        assert outcome is not None
        assert [(r.blue, r.red) for r in outcome.results.values()] == [(5, 3), (5, 3)]
        assert all(r.winner is Faction.BLUE for r in outcome.results.values())
        assert outcome.districts_won == {Faction.BLUE: 2, Faction.RED: 0}
        assert outcome.objective_met

    def test_even_split_resolved_by_tie_rule(self):
        """An 8/8 board still carries both districts when ties go to blue."""

        level = _level(["BBRR"] * 4)
        outcome = _evaluate(level, HALVES)

        assert outcome is not None
        assert outcome.cells == {Faction.BLUE: 8, Faction.RED: 8}
        assert outcome.popular_winner is None
        assert all(r.tied for r in outcome.results.values())
        assert outcome.districts_won[Faction.BLUE] == 2
        assert outcome.objective_met

        red_outcome = _evaluate(level, HALVES, RED_TIES)
        assert red_outcome is not None
        assert red_outcome.districts_won == {Faction.BLUE: 0, Faction.RED: 2}
        assert not red_outcome.objective_met

    def test_invalid_partition_is_not_scored(self):
        level = _level(["BBRR"] * 4)
        split = Partition.from_rows([[1] * 4, [2] * 4, [2] * 4, [1] * 4])
        assert _evaluate(level, split) is None

    def test_evaluation_is_deterministic(self):
        level = _level(["BRBR", "RBRB", "BBRR", "RRBB"], wins_needed=1)
        assert _evaluate(level, HALVES) == _evaluate(level, HALVES)

    def test_popular_winner_and_margin(self):
        level = _level(["BBBB", "BBBR", "RRRR", "BBRR"], wins_needed=1)
        outcome = _evaluate(level, HALVES)
        assert outcome is not None
        assert outcome.popular_winner is Faction.BLUE
        assert outcome.results[DistrictID(1)].margin == 6
        assert outcome.results[DistrictID(2)].winner is Faction.RED
        assert outcome.results[DistrictID(2)].margin == 4
        assert outcome.objective_met


def test_tally_district_counts_cells():
    grid = Grid.from_rows(["BBBR", "BBRR", "BBBR", "BBRR"])
    result = tally_district(grid, HALVES, DistrictID(2), rules=RED_TIES)
    assert (result.blue, result.red, result.winner) == (5, 3, Faction.BLUE)
