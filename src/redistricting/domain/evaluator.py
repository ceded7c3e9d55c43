"""Outcome evaluation: district winners, tallies and the level objective."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import Faction
from .models import DistrictID, Grid, Level, Partition
from .rules_config import DEFAULT_RULES, RulesConfig
from .validator import ValidationReport


@dataclass(frozen=True, slots=True)
class DistrictResult:
    """Cell tally and winner of one district."""

    district_id: DistrictID
    blue: int
    red: int
    winner: Faction

    @property
    def tied(self) -> bool:
        return self.blue == self.red

    @property
    def margin(self) -> int:
        return abs(self.blue - self.red)


@dataclass(frozen=True, slots=True)
class Outcome:
    """Aggregate result of a valid partition."""

    results: dict[DistrictID, DistrictResult]
    districts_won: dict[Faction, int]
    cells: dict[Faction, int]
    target_faction: Faction
    objective_met: bool

    @property
    def popular_winner(self) -> Faction | None:
        """Faction holding more cells overall, ``None`` on an even split."""

        if self.cells[Faction.BLUE] == self.cells[Faction.RED]:
            return None
        return max(self.cells, key=self.cells.__getitem__)


def district_winner(blue: int, red: int, *, tie_winner: Faction) -> Faction:
    """Strict majority wins; an exact tie always goes to ``tie_winner``."""

    if blue > red:
        return Faction.BLUE
    if red > blue:
        return Faction.RED
    return tie_winner


def tally_district(
    grid: Grid,
    partition: Partition,
    district_id: DistrictID,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> DistrictResult:
    blue = red = 0
    for faction, value in zip(grid.cells, partition.assignments):
        if value != district_id:
            continue
        if faction is Faction.BLUE:
            blue += 1
        else:
            red += 1
    return DistrictResult(
        district_id=district_id,
        blue=blue,
        red=red,
        winner=district_winner(blue, red, tie_winner=rules.scoring.tie_winner),
    )


def evaluate_outcome(
    level: Level,
    partition: Partition,
    report: ValidationReport,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome | None:
    """Score a partition, or return ``None`` when it is not valid.

    Winners are only meaningful for a partition whose districts are all
    connected and correctly sized, so invalid partitions are never scored.
    """

    if not report.valid:
        return None

    blue_counts: dict[DistrictID, int] = {d: 0 for d in report.districts}
    red_counts: dict[DistrictID, int] = {d: 0 for d in report.districts}
    for faction, district_id in zip(level.grid.cells, partition.assignments):
        if faction is Faction.BLUE:
            blue_counts[district_id] += 1
        else:
            red_counts[district_id] += 1

    tie_winner = rules.scoring.tie_winner
    results = {
        district_id: DistrictResult(
            district_id=district_id,
            blue=blue_counts[district_id],
            red=red_counts[district_id],
            winner=district_winner(
                blue_counts[district_id], red_counts[district_id], tie_winner=tie_winner
            ),
        )
        for district_id in sorted(report.districts)
    }

    districts_won = {faction: 0 for faction in Faction}
    for result in results.values():
        districts_won[result.winner] += 1

    target = level.win_condition.target_faction
    return Outcome(
        results=results,
        districts_won=districts_won,
        cells=level.grid.faction_counts(),
        target_faction=target,
        objective_met=districts_won[target] >= level.win_condition.min_districts_won,
    )
