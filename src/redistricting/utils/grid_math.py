"""
Square-grid coordinate math for Redistricting.

This module implements the coordinate operations used by the district
partition engine. It supports:
- Row-major linearization of grid positions
- Finding the 4-connected neighbours of a cell
- Adjacency tests between two cells
- Serpentine (boustrophedon) walks that visit every cell exactly once

Coordinate System:
------------------
Cells are addressed by (row, col):
   - row: 0 at the top, grows downwards, bounded by the grid height
   - col: 0 at the left, grows rightwards, bounded by the grid width

Only orthogonal neighbours count as adjacent (4-connectivity); diagonal
cells never connect two parts of a district.
"""

from collections.abc import Iterator
from dataclasses import dataclass

# Offsets in (row, col) order: up, right, down, left
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = ((-1, 0), (0, 1), (1, 0), (0, -1))


@dataclass(frozen=True)
class GridCoord:
    """
    A cell position on a rectangular grid.

    Attributes:
        row: Row index (vertical axis)
        col: Column index (horizontal axis)

    Example:
        >>> origin = GridCoord(row=0, col=0)
        >>> are_adjacent(origin, GridCoord(row=0, col=1))
        True
    """

    row: int
    col: int

    def __hash__(self) -> int:
        """Make GridCoord hashable for use in sets and dicts."""
        return hash((self.row, self.col))


def in_bounds(coord: GridCoord, width: int, height: int) -> bool:
    """
    Check whether a coordinate lies inside a width x height grid.

    Args:
        coord: Cell coordinate
        width: Number of columns
        height: Number of rows

    Returns:
        True if 0 <= row < height and 0 <= col < width

    Example:
        >>> in_bounds(GridCoord(row=3, col=0), width=4, height=4)
        True
        >>> in_bounds(GridCoord(row=4, col=0), width=4, height=4)
        False
    """
    return 0 <= coord.row < height and 0 <= coord.col < width


def to_index(coord: GridCoord, width: int) -> int:
    """
    Convert a coordinate to its row-major flat index.

    Args:
        coord: Cell coordinate (assumed in bounds)
        width: Number of columns

    Returns:
        row * width + col

    Example:
        >>> to_index(GridCoord(row=1, col=2), width=4)
        6
    """
    return coord.row * width + coord.col


def from_index(index: int, width: int) -> GridCoord:
    """
    Convert a row-major flat index back to a coordinate.

    Example:
        >>> from_index(6, width=4)
        GridCoord(row=1, col=2)
    """
    row, col = divmod(index, width)
    return GridCoord(row=row, col=col)


def grid_neighbors(coord: GridCoord, width: int, height: int) -> list[GridCoord]:
    """
    Get the in-bounds orthogonal neighbours of a cell.

    Neighbours are returned in a fixed order (up, right, down, left) so
    traversals built on top of this function are deterministic.

    Args:
        coord: Center cell
        width: Number of columns
        height: Number of rows

    Returns:
        Between two (corner) and four (interior) neighbouring coordinates

    Example:
        >>> grid_neighbors(GridCoord(row=0, col=0), width=3, height=3)
        [GridCoord(row=0, col=1), GridCoord(row=1, col=0)]
    """
    neighbors = []
    for d_row, d_col in NEIGHBOR_OFFSETS:
        candidate = GridCoord(row=coord.row + d_row, col=coord.col + d_col)
        if in_bounds(candidate, width, height):
            neighbors.append(candidate)
    return neighbors


def are_adjacent(a: GridCoord, b: GridCoord) -> bool:
    """
    Check whether two cells share an edge.

    Example:
        >>> are_adjacent(GridCoord(row=0, col=0), GridCoord(row=1, col=1))
        False
    """
    return abs(a.row - b.row) + abs(a.col - b.col) == 1


def manhattan_distance(a: GridCoord, b: GridCoord) -> int:
    """Return the number of orthogonal steps between two cells."""
    return abs(a.row - b.row) + abs(a.col - b.col)


def serpentine_order(width: int, height: int, *, column_major: bool = False) -> Iterator[GridCoord]:
    """
    Walk every cell of the grid along a boustrophedon path.

    Consecutive cells of the walk are always adjacent, so any contiguous
    run of the walk forms a 4-connected region. Row-major walks sweep
    left-to-right on even rows and right-to-left on odd rows; the
    column-major variant does the same down the columns.

    Args:
        width: Number of columns
        height: Number of rows
        column_major: Sweep columns instead of rows

    Yields:
        Every coordinate of the grid exactly once

    Example:
        >>> [(c.row, c.col) for c in serpentine_order(2, 2)]
        [(0, 0), (0, 1), (1, 1), (1, 0)]
    """
    if column_major:
        for col in range(width):
            rows = range(height) if col % 2 == 0 else range(height - 1, -1, -1)
            for row in rows:
                yield GridCoord(row=row, col=col)
        return

    for row in range(height):
        cols = range(width) if row % 2 == 0 else range(width - 1, -1, -1)
        for col in cols:
            yield GridCoord(row=row, col=col)
