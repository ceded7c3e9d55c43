"""Region validation for partitions.

Pure functions that decide, for every district, whether its cells form a
single 4-connected region and whether its size respects the level's
bounds. Nothing here mutates the partition; the result is a fresh
:class:`ValidationReport` each time, so re-validating an unchanged
partition always yields an equal report.

Districts may wrap around other districts (holes are allowed): only
connectivity and size count.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

from redistricting.utils.grid_math import from_index, grid_neighbors, to_index

from .models import DistrictID, Grid, Partition, district_range


@dataclass(frozen=True, slots=True)
class DistrictValidity:
    """Verdict for a single district."""

    district_id: DistrictID
    size: int
    component_count: int
    size_ok: bool

    @property
    def connected(self) -> bool:
        return self.component_count == 1

    @property
    def valid(self) -> bool:
        return self.connected and self.size_ok


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Per-district verdicts plus the global coverage check."""

    districts: dict[DistrictID, DistrictValidity]
    coverage_ok: bool

    @property
    def valid(self) -> bool:
        return self.coverage_ok and all(d.valid for d in self.districts.values())

    def invalid_districts(self) -> list[DistrictID]:
        return sorted(d.district_id for d in self.districts.values() if not d.valid)

    def disconnected_districts(self) -> list[DistrictID]:
        return sorted(d.district_id for d in self.districts.values() if not d.connected)


def _flood(partition: Partition, start: int, visited: set[int]) -> None:
    """Mark every cell reachable from ``start`` without leaving its district."""

    width, height = partition.width, partition.height
    assignments = partition.assignments
    district_id = assignments[start]
    visited.add(start)
    queue = deque([start])
    while queue:
        current = from_index(queue.popleft(), width)
        for neighbor in grid_neighbors(current, width, height):
            index = to_index(neighbor, width)
            if index not in visited and assignments[index] == district_id:
                visited.add(index)
                queue.append(index)


def count_components(partition: Partition, district_id: DistrictID) -> tuple[int, int]:
    """Return ``(size, component_count)`` for one district."""

    members = [index for index, value in enumerate(partition.assignments) if value == district_id]
    visited: set[int] = set()
    components = 0
    for start in members:
        if start not in visited:
            components += 1
            _flood(partition, start, visited)
    return len(members), components


def component_summary(partition: Partition) -> dict[DistrictID, tuple[int, int]]:
    """``(size, component_count)`` for every district present, in one O(cells) sweep."""

    visited: set[int] = set()
    sizes: dict[DistrictID, int] = {}
    components: dict[DistrictID, int] = {}
    for index, district_id in enumerate(partition.assignments):
        sizes[district_id] = sizes.get(district_id, 0) + 1
        if index not in visited:
            components[district_id] = components.get(district_id, 0) + 1
            _flood(partition, index, visited)
    return {district_id: (size, components[district_id]) for district_id, size in sizes.items()}


def _size_ok(size: int, min_size: int | None, max_size: int | None) -> bool:
    if size == 0:
        return False
    if min_size is not None and size < min_size:
        return False
    return max_size is None or size <= max_size


def check_district(
    partition: Partition,
    district_id: DistrictID,
    *,
    min_size: int | None = None,
    max_size: int | None = None,
) -> DistrictValidity:
    size, components = count_components(partition, district_id)
    return DistrictValidity(
        district_id=district_id,
        size=size,
        component_count=components,
        size_ok=_size_ok(size, min_size, max_size),
    )


def check_coverage(grid: Grid, partition: Partition, district_count: int) -> bool:
    """Every grid cell is assigned exactly once, to an existing district."""

    if (partition.width, partition.height) != (grid.width, grid.height):
        return False
    valid_ids = district_range(district_count)
    return all(value in valid_ids for value in partition.assignments)


def validate_partition(
    grid: Grid,
    partition: Partition,
    *,
    district_count: int,
    min_size: int | None = None,
    max_size: int | None = None,
) -> ValidationReport:
    """Validate every district of ``partition`` from scratch."""

    summary = component_summary(partition)
    districts: dict[DistrictID, DistrictValidity] = {}
    for raw_id in district_range(district_count):
        district_id = DistrictID(raw_id)
        size, components = summary.get(district_id, (0, 0))
        districts[district_id] = DistrictValidity(
            district_id=district_id,
            size=size,
            component_count=components,
            size_ok=_size_ok(size, min_size, max_size),
        )
    return ValidationReport(
        districts=districts,
        coverage_ok=check_coverage(grid, partition, district_count),
    )


def revalidate(
    grid: Grid,
    partition: Partition,
    previous: ValidationReport,
    touched: Iterable[DistrictID],
    *,
    district_count: int,
    min_size: int | None = None,
    max_size: int | None = None,
) -> ValidationReport:
    """Re-check only the districts an edit touched, reusing earlier verdicts.

    An edit that moves cells between districts cannot change the
    connectivity or size of any district it did not touch, so the result
    equals a full :func:`validate_partition` pass.
    """

    districts = dict(previous.districts)
    for district_id in touched:
        if district_id in district_range(district_count):
            districts[district_id] = check_district(
                partition, district_id, min_size=min_size, max_size=max_size
            )
    return ValidationReport(
        districts=districts,
        coverage_ok=check_coverage(grid, partition, district_count),
    )
