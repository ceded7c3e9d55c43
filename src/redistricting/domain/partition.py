"""Edit operations on a partition.

Every operation is pure: it validates its whole input first and then
returns a new :class:`~redistricting.domain.models.Partition`. When the
input is rejected an exception is raised before anything is built, so the
caller's partition is never partially edited. Connectivity is *not*
checked here; a disconnected result is a legal intermediate state that the
validator reports.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from redistricting.utils.grid_math import GridCoord, are_adjacent

from .errors import InvalidDistrictIdError, NotAdjacentError
from .models import DistrictID, Partition, district_range


@dataclass(frozen=True, slots=True)
class BoundaryEdge:
    """Two adjacent cells on either side of a district boundary.

    The ``target`` cell is moved into the district of ``source``.
    """

    source: GridCoord
    target: GridCoord


def check_district_id(district_id: int, district_count: int) -> DistrictID:
    """Return ``district_id`` typed, or raise ``InvalidDistrictIdError``."""

    if isinstance(district_id, bool) or district_id not in district_range(district_count):
        raise InvalidDistrictIdError(
            f"district {district_id} does not exist; valid ids are 1..{district_count}"
        )
    return DistrictID(district_id)


def assign(
    partition: Partition,
    coord: GridCoord,
    district_id: int,
    *,
    district_count: int,
) -> Partition:
    """Move a single cell into ``district_id``."""

    return assign_many(partition, [coord], district_id, district_count=district_count)


def assign_many(
    partition: Partition,
    coords: Iterable[GridCoord],
    district_id: int,
    *,
    district_count: int,
) -> Partition:
    """Move every cell in ``coords`` into ``district_id`` as one atomic edit."""

    target = check_district_id(district_id, district_count)
    indices = [partition.index_of(coord) for coord in coords]
    return partition.replace((index, target) for index in indices)


def swap_boundary(
    partition: Partition,
    edge: BoundaryEdge,
    *,
    district_count: int,
) -> Partition:
    """Push the boundary across ``edge`` so the target cell joins the source's district."""

    if not are_adjacent(edge.source, edge.target):
        raise NotAdjacentError(
            f"cells ({edge.source.row}, {edge.source.col}) and "
            f"({edge.target.row}, {edge.target.col}) do not share an edge"
        )
    source_district = partition.district_of(edge.source)
    if partition.district_of(edge.target) == source_district:
        raise NotAdjacentError("both cells already belong to the same district")
    return assign(partition, edge.target, source_district, district_count=district_count)


def drag(
    partition: Partition,
    path: Sequence[GridCoord],
    *,
    district_count: int,
) -> Partition:
    """Apply a pointer drag: every cell after the first joins the first cell's district.

    Consecutive cells of the path must share an edge.
    """

    if not path:
        return partition
    for previous, current in zip(path, path[1:]):
        # bounds errors take precedence over adjacency so off-grid drags report as such
        partition.index_of(current)
        if not are_adjacent(previous, current):
            raise NotAdjacentError(
                f"drag jumps from ({previous.row}, {previous.col}) to "
                f"({current.row}, {current.col})"
            )
    district_id = partition.district_of(path[0])
    return assign_many(partition, path[1:], district_id, district_count=district_count)


def changed_districts(before: Partition, after: Partition) -> set[DistrictID]:
    """Districts that gained or lost at least one cell between two snapshots."""

    touched: set[DistrictID] = set()
    for old, new in zip(before.assignments, after.assignments):
        if old != new:
            touched.add(old)
            touched.add(new)
    return touched
