"""Unit tests for the grid, partition and level dataclasses."""

from __future__ import annotations

import pytest

from redistricting.domain.enums import Faction
from redistricting.domain.errors import OutOfBoundsError
from redistricting.domain.models import (
    DistrictID,
    Grid,
    Level,
    Partition,
    WinCondition,
    parse_faction,
)
from redistricting.utils.grid_math import GridCoord


def _grid() -> Grid:
    return Grid.from_rows(
        [
            ["B", "B", "R"],
            ["R", "blue", "red"],
        ]
    )


def test_grid_from_rows_parses_aliases():
    grid = _grid()
    assert (grid.width, grid.height) == (3, 2)
    assert grid.faction_at(GridCoord(row=0, col=0)) is Faction.BLUE
    assert grid.faction_at(GridCoord(row=1, col=2)) is Faction.RED
    assert grid.rows()[1] == [Faction.RED, Faction.BLUE, Faction.RED]


def test_grid_faction_counts():
    assert _grid().faction_counts() == {Faction.BLUE: 3, Faction.RED: 3}


@pytest.mark.parametrize(("row", "col"), [(-1, 0), (2, 0), (0, 3), (5, 5)])
def test_grid_query_outside_raises_out_of_bounds(row, col):
    with pytest.raises(OutOfBoundsError, match="outside"):
        _grid().faction_at(GridCoord(row=row, col=col))


def test_grid_rejects_wrong_cell_count():
    with pytest.raises(ValueError, match="expected 4 cells"):
        Grid(width=2, height=2, cells=(Faction.BLUE,) * 3)


def test_grid_rejects_ragged_rows():
    with pytest.raises(ValueError, match="same length"):
        Grid.from_rows([["B", "R"], ["B"]])


def test_grid_is_immutable():
    grid = _grid()
    with pytest.raises(AttributeError):
        grid.width = 10  # type: ignore[misc]


def test_parse_faction_rejects_unknown():
    with pytest.raises(ValueError, match="unknown faction"):
        parse_faction("green")


def test_faction_opponent():
    assert Faction.BLUE.opponent is Faction.RED
    assert Faction.RED.opponent is Faction.BLUE


def test_partition_lookups():
    partition = Partition.from_rows([[1, 1, 2], [1, 2, 2]])
    assert partition.district_of(GridCoord(row=1, col=0)) == 1
    assert partition.cells_of(DistrictID(2)) == [
        GridCoord(row=0, col=2),
        GridCoord(row=1, col=1),
        GridCoord(row=1, col=2),
    ]
    assert partition.district_sizes() == {1: 3, 2: 3}
    assert partition.district_ids() == {1, 2}
    assert partition.rows() == [[1, 1, 2], [1, 2, 2]]


def test_partition_replace_returns_new_snapshot():
    original = Partition.uniform(2, 2, DistrictID(1))
    updated = original.replace([(3, DistrictID(2))])
    assert original.assignments == (1, 1, 1, 1)
    assert updated.assignments == (1, 1, 1, 2)


def test_partition_out_of_bounds():
    with pytest.raises(OutOfBoundsError):
        Partition.uniform(2, 2, DistrictID(1)).district_of(GridCoord(row=2, col=0))


def test_level_validates_win_condition():
    with pytest.raises(ValueError, match="min_districts_won"):
        Level(
            grid=_grid(),
            district_count=2,
            win_condition=WinCondition(target_faction=Faction.BLUE, min_districts_won=3),
        )


def test_level_label_prefers_index():
    win = WinCondition(target_faction=Faction.BLUE, min_districts_won=1)
    assert Level(grid=_grid(), district_count=2, win_condition=win, index=0).label == "#0"
    assert Level(grid=_grid(), district_count=2, win_condition=win, seed="s").label == "s"
    assert list(Level(grid=_grid(), district_count=2, win_condition=win).district_ids) == [1, 2]
