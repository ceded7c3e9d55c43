"""Dataclasses describing the Redistricting board.

The grid and the partition are both stored as flat, row-major tuples:
cell ``(row, col)`` lives at index ``row * width + col``. Both types are
frozen, so a partition snapshot is just a reference and an edit always
produces a new object, leaving the previous one untouched.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import NewType

from redistricting.utils.grid_math import (
    GridCoord,
    from_index,
    grid_neighbors,
    in_bounds,
    to_index,
)

from .enums import Faction
from .errors import OutOfBoundsError

# --- Strongly typed identifiers -------------------------------------------------

DistrictID = NewType("DistrictID", int)

_FACTION_ALIASES: dict[str, Faction] = {
    "b": Faction.BLUE,
    "blue": Faction.BLUE,
    "r": Faction.RED,
    "red": Faction.RED,
}


def parse_faction(value: Faction | str) -> Faction:
    """Accept a Faction or one of its textual forms ("blue", "B", "red", "R")."""

    if isinstance(value, Faction):
        return value
    try:
        return _FACTION_ALIASES[value.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"unknown faction {value!r}") from exc


def district_range(district_count: int) -> range:
    """Valid district identifiers for a level with ``district_count`` districts."""

    return range(1, district_count + 1)


# --- Core dataclasses -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Grid:
    """Immutable faction layout of a level."""

    width: int
    height: int
    cells: tuple[Faction, ...]

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"grid dimensions must be positive, got {self.width}x{self.height}")
        if len(self.cells) != self.width * self.height:
            raise ValueError(
                f"expected {self.width * self.height} cells for a {self.width}x{self.height} "
                f"grid, got {len(self.cells)}"
            )

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Faction | str]]) -> Grid:
        if not rows:
            raise ValueError("grid requires at least one row")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("all grid rows must have the same length")
        cells = tuple(parse_faction(value) for row in rows for value in row)
        return cls(width=width, height=len(rows), cells=cells)

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    def contains(self, coord: GridCoord) -> bool:
        return in_bounds(coord, self.width, self.height)

    def index_of(self, coord: GridCoord) -> int:
        """Flat index of ``coord``; raises ``OutOfBoundsError`` outside the grid."""

        if not self.contains(coord):
            raise OutOfBoundsError(
                f"position ({coord.row}, {coord.col}) is outside the "
                f"{self.width}x{self.height} grid"
            )
        return to_index(coord, self.width)

    def faction_at(self, coord: GridCoord) -> Faction:
        return self.cells[self.index_of(coord)]

    def coords(self) -> Iterator[GridCoord]:
        for index in range(len(self.cells)):
            yield from_index(index, self.width)

    def neighbors(self, coord: GridCoord) -> list[GridCoord]:
        return grid_neighbors(coord, self.width, self.height)

    def faction_counts(self) -> dict[Faction, int]:
        counts = Counter(self.cells)
        return {faction: counts.get(faction, 0) for faction in Faction}

    def rows(self) -> list[list[Faction]]:
        return [
            list(self.cells[row * self.width : (row + 1) * self.width])
            for row in range(self.height)
        ]


@dataclass(frozen=True, slots=True)
class Partition:
    """Assignment of every grid cell to exactly one district."""

    width: int
    height: int
    assignments: tuple[DistrictID, ...]

    def __post_init__(self) -> None:
        if len(self.assignments) != self.width * self.height:
            raise ValueError(
                f"partition of a {self.width}x{self.height} grid needs "
                f"{self.width * self.height} assignments, got {len(self.assignments)}"
            )

    @classmethod
    def uniform(cls, width: int, height: int, district_id: DistrictID) -> Partition:
        return cls(width=width, height=height, assignments=(district_id,) * (width * height))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> Partition:
        if not rows:
            raise ValueError("partition requires at least one row")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("all partition rows must have the same length")
        assignments = tuple(DistrictID(int(value)) for row in rows for value in row)
        return cls(width=width, height=len(rows), assignments=assignments)

    def index_of(self, coord: GridCoord) -> int:
        if not in_bounds(coord, self.width, self.height):
            raise OutOfBoundsError(
                f"position ({coord.row}, {coord.col}) is outside the "
                f"{self.width}x{self.height} grid"
            )
        return to_index(coord, self.width)

    def district_of(self, coord: GridCoord) -> DistrictID:
        return self.assignments[self.index_of(coord)]

    def cells_of(self, district_id: DistrictID) -> list[GridCoord]:
        return [
            from_index(index, self.width)
            for index, value in enumerate(self.assignments)
            if value == district_id
        ]

    def district_ids(self) -> set[DistrictID]:
        return set(self.assignments)

    def district_sizes(self) -> dict[DistrictID, int]:
        return dict(Counter(self.assignments))

    def replace(self, changes: Iterable[tuple[int, DistrictID]]) -> Partition:
        """Return a copy with the given ``(flat_index, district_id)`` changes applied."""

        values = list(self.assignments)
        for index, district_id in changes:
            values[index] = district_id
        return Partition(width=self.width, height=self.height, assignments=tuple(values))

    def rows(self) -> list[list[int]]:
        return [
            [int(value) for value in self.assignments[row * self.width : (row + 1) * self.width]]
            for row in range(self.height)
        ]


@dataclass(frozen=True, slots=True)
class WinCondition:
    """Districts the target faction must carry to clear the level."""

    target_faction: Faction
    min_districts_won: int


@dataclass(frozen=True, slots=True)
class Level:
    """Immutable level configuration."""

    grid: Grid
    district_count: int
    win_condition: WinCondition
    min_district_size: int | None = None
    max_district_size: int | None = None
    move_limit: int | None = None
    index: int | None = None
    seed: str | None = None

    def __post_init__(self) -> None:
        if self.district_count <= 0:
            raise ValueError(f"district_count must be positive, got {self.district_count}")
        if self.district_count > self.grid.cell_count:
            raise ValueError("a level cannot have more districts than cells")
        if not 0 < self.win_condition.min_districts_won <= self.district_count:
            raise ValueError(
                f"min_districts_won must be in 1..{self.district_count}, "
                f"got {self.win_condition.min_districts_won}"
            )

    @property
    def district_ids(self) -> range:
        return district_range(self.district_count)

    @property
    def label(self) -> str:
        if self.index is not None:
            return f"#{self.index}"
        return self.seed or "custom"
