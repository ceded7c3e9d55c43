"""Level generation.

Levels are built *solution first*, which is what guarantees solvability:

1. A winning partition is drawn: the serpentine walk of the grid is cut
   into ``K`` runs (each run is connected because consecutive cells of
   the walk share an edge), then random boundary moves reshape the
   districts while keeping every district connected and within the size
   bounds.
2. Factions are painted onto that partition so the player's faction holds
   a strict majority in just enough districts to meet the objective while
   staying a strict minority of all cells whenever the arithmetic allows.
3. The starting partition is drawn the same way from the column-major walk
   with a different random stream, and is kept only if it is valid,
   differs from the solution and does not already win.
4. The solution is checked with the same validator and evaluator the
   player is judged by. A failure here is a generator defect and raises
   :class:`UnsolvableLevelError`.

Everything is driven by seeds from :mod:`redistricting.utils.rng`, so a
level index or seed always yields the same level.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass

from redistricting.utils.grid_math import from_index, grid_neighbors, serpentine_order, to_index
from redistricting.utils.rng import derive_seed, generate_seed, make_rng

from .enums import Faction
from .errors import LevelGenerationError, UnsolvableLevelError
from .evaluator import evaluate_outcome
from .models import DistrictID, Grid, Level, Partition, WinCondition
from .rules_config import DEFAULT_RULES, LevelShape, RulesConfig
from .validator import ValidationReport, validate_partition

logger = logging.getLogger(__name__)

MIN_DISTRICT_SIZE = 3


@dataclass(frozen=True, slots=True)
class GeneratedLevel:
    """A level, the partition the player starts from, and a known solution."""

    level: Level
    initial_partition: Partition
    solution: Partition


def level_seed(index: int) -> str:
    """Seed string used for the level at ``index`` in the progression."""

    return generate_seed("level", index)


def generate_level(
    index: int | None = None,
    *,
    seed: int | str | None = None,
    shape: LevelShape | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> GeneratedLevel:
    """Build a solvable level from a progression index or an explicit seed.

    Args:
        index: Position in ``rules.generation.progression``; selects both the
            shape (unless ``shape`` is given) and the seed
        seed: Explicit seed; the shape defaults to the first progression entry
        shape: Override the board dimensions and district count
        rules: Scoring and generation rules

    Returns:
        GeneratedLevel with the level, its starting partition and a solution

    Raises:
        ValueError: If neither or both of ``index`` and ``seed`` are given, or
            the shape cannot hold meaningful districts
        LevelGenerationError: If no non-winning starting layout was found
        UnsolvableLevelError: If the constructed solution fails its own check
    """
    if (index is None) == (seed is None):
        raise ValueError("provide exactly one of index or seed")

    generation = rules.generation
    if index is not None:
        base_seed = level_seed(index)
        shape = shape or generation.shape_for(index)
    else:
        base_seed = generate_seed("seed", seed)
        shape = shape or generation.shape_for(0)
    _check_shape(shape)

    for attempt in range(generation.max_attempts):
        attempt_seed = base_seed if attempt == 0 else derive_seed(base_seed, f"retry{attempt}")
        generated = _build(shape, attempt_seed, rules, index=index, label_seed=base_seed)
        if generated is not None:
            if attempt:
                logger.debug("level %s generated after %d retries", base_seed, attempt)
            return generated
        logger.debug("level %s attempt %d produced no playable start", base_seed, attempt)

    logger.warning("giving up on level %s after %d attempts", base_seed, generation.max_attempts)
    raise LevelGenerationError(
        f"could not find a non-winning starting partition for {base_seed} "
        f"in {generation.max_attempts} attempts"
    )


def new_level(
    index_or_seed: int | str,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> tuple[Grid, Partition, int, WinCondition]:
    """Level-start payload for the presentation layer.

    Integers select a progression index; strings are used as explicit seeds.
    """

    if isinstance(index_or_seed, int):
        generated = generate_level(index_or_seed, rules=rules)
    else:
        generated = generate_level(seed=index_or_seed, rules=rules)
    level = generated.level
    return level.grid, generated.initial_partition, level.district_count, level.win_condition


def size_bounds(shape: LevelShape, tolerance: int) -> tuple[int, int]:
    """Smallest and largest district size allowed for ``shape``."""

    low = shape.cell_count // shape.district_count
    high = -(-shape.cell_count // shape.district_count)
    return max(1, low - tolerance), high + tolerance


def required_wins(district_count: int, rules: RulesConfig = DEFAULT_RULES) -> int:
    return min(district_count, district_count // 2 + rules.scoring.win_margin)


# --- construction ---------------------------------------------------------------


def _check_shape(shape: LevelShape) -> None:
    if shape.width <= 0 or shape.height <= 0:
        raise ValueError(f"grid dimensions must be positive, got {shape.width}x{shape.height}")
    if shape.district_count < 2:
        raise ValueError("a level needs at least two districts")
    if shape.district_size < MIN_DISTRICT_SIZE:
        raise ValueError(
            f"{shape.district_count} districts on a {shape.width}x{shape.height} grid leaves "
            f"fewer than {MIN_DISTRICT_SIZE} cells per district"
        )


def _build(
    shape: LevelShape,
    seed: str,
    rules: RulesConfig,
    *,
    index: int | None,
    label_seed: str,
) -> GeneratedLevel | None:
    generation = rules.generation
    min_size, max_size = size_bounds(shape, generation.size_tolerance)
    steps = generation.moves_per_cell * shape.cell_count

    solution_values = _serpentine_runs(shape, column_major=False)
    solution_rng = make_rng(derive_seed(seed, "solution"))
    _perturb(solution_values, shape, solution_rng, steps, min_size, max_size)
    solution = Partition(width=shape.width, height=shape.height, assignments=tuple(solution_values))

    win_condition = WinCondition(
        target_faction=rules.scoring.player_faction,
        min_districts_won=required_wins(shape.district_count, rules),
    )
    grid = _paint_factions(
        solution,
        shape,
        make_rng(derive_seed(seed, "factions")),
        target=win_condition.target_faction,
        winners_needed=win_condition.min_districts_won,
    )
    level = Level(
        grid=grid,
        district_count=shape.district_count,
        win_condition=win_condition,
        min_district_size=min_size,
        max_district_size=max_size,
        move_limit=shape.move_limit,
        index=index,
        seed=label_seed,
    )
    verify_solution(level, solution, rules=rules)

    for candidate in range(generation.initial_candidates):
        values = _serpentine_runs(shape, column_major=candidate % 2 == 0)
        rng = make_rng(derive_seed(seed, f"initial{candidate}"))
        _perturb(values, shape, rng, steps, min_size, max_size)
        initial = Partition(width=shape.width, height=shape.height, assignments=tuple(values))
        if initial.assignments == solution.assignments:
            continue
        report = _report(level, initial)
        outcome = evaluate_outcome(level, initial, report, rules=rules)
        if outcome is not None and not outcome.objective_met:
            return GeneratedLevel(level=level, initial_partition=initial, solution=solution)
    return None


def verify_solution(
    level: Level,
    solution: Partition,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    """Raise ``UnsolvableLevelError`` unless ``solution`` is valid and wins ``level``."""

    report = _report(level, solution)
    if not report.valid:
        raise UnsolvableLevelError(
            f"solution for level {level.label} is invalid; "
            f"bad districts {report.invalid_districts()}"
        )
    outcome = evaluate_outcome(level, solution, report, rules=rules)
    if outcome is None or not outcome.objective_met:
        raise UnsolvableLevelError(f"solution for level {level.label} does not meet the objective")


def _report(level: Level, partition: Partition) -> ValidationReport:
    return validate_partition(
        level.grid,
        partition,
        district_count=level.district_count,
        min_size=level.min_district_size,
        max_size=level.max_district_size,
    )


def _serpentine_runs(shape: LevelShape, *, column_major: bool) -> list[DistrictID]:
    """Cut the serpentine walk into ``K`` consecutive runs of near-equal length."""

    base, extra = divmod(shape.cell_count, shape.district_count)
    run_lengths = [base + 1 if i < extra else base for i in range(shape.district_count)]
    values: list[DistrictID] = [DistrictID(0)] * shape.cell_count
    walk = serpentine_order(shape.width, shape.height, column_major=column_major)
    for district, length in enumerate(run_lengths, start=1):
        for _ in range(length):
            values[to_index(next(walk), shape.width)] = DistrictID(district)
    return values


def _perturb(
    values: list[DistrictID],
    shape: LevelShape,
    rng: random.Random,
    steps: int,
    min_size: int,
    max_size: int,
) -> None:
    """Reshape districts in place with random single-cell boundary moves.

    A move hands a cell to a neighbouring district only if both districts
    stay inside the size bounds and the donor stays connected; the
    receiver stays connected because the cell touches it.
    """

    width, height = shape.width, shape.height
    sizes: dict[DistrictID, int] = {}
    for value in values:
        sizes[value] = sizes.get(value, 0) + 1

    for _ in range(steps):
        index = rng.randrange(len(values))
        donor = values[index]
        if sizes[donor] - 1 < min_size:
            continue
        coord = from_index(index, width)
        receivers = sorted(
            {
                values[to_index(n, width)]
                for n in grid_neighbors(coord, width, height)
                if values[to_index(n, width)] != donor
            }
        )
        if not receivers:
            continue
        receiver = rng.choice(receivers)
        if sizes[receiver] + 1 > max_size:
            continue
        if not _connected_without(values, shape, index):
            continue
        values[index] = receiver
        sizes[donor] -= 1
        sizes[receiver] += 1


def _connected_without(values: list[DistrictID], shape: LevelShape, removed: int) -> bool:
    """Would the district owning ``removed`` stay connected without that cell?"""

    width, height = shape.width, shape.height
    district = values[removed]
    remaining = sum(1 for value in values if value == district) - 1
    if remaining == 0:
        return False

    start = next(
        (
            to_index(n, width)
            for n in grid_neighbors(from_index(removed, width), width, height)
            if values[to_index(n, width)] == district
        ),
        None,
    )
    if start is None:
        return False

    seen = {removed, start}
    queue = deque([start])
    reached = 1
    while queue:
        current = from_index(queue.popleft(), width)
        for neighbor in grid_neighbors(current, width, height):
            idx = to_index(neighbor, width)
            if idx not in seen and values[idx] == district:
                seen.add(idx)
                queue.append(idx)
                reached += 1
    return reached == remaining


def _paint_factions(
    solution: Partition,
    shape: LevelShape,
    rng: random.Random,
    *,
    target: Faction,
    winners_needed: int,
) -> Grid:
    """Assign factions so ``solution`` is a winning partition for ``target``."""

    members: dict[DistrictID, list[int]] = {}
    for index, value in enumerate(solution.assignments):
        members.setdefault(value, []).append(index)

    # Smallest districts need the fewest target cells for a majority.
    order = sorted(members, key=lambda d: (len(members[d]), rng.random()))
    winners = order[:winners_needed]
    losers = order[winners_needed:]

    target_counts = {d: len(members[d]) // 2 + 1 for d in winners}
    needed = sum(target_counts.values())
    budget = (shape.cell_count - 1) // 2
    if needed > budget:
        logger.debug(
            "%dx%d/%d cannot keep the target faction a minority; using %d cells",
            shape.width,
            shape.height,
            shape.district_count,
            needed,
        )
        budget = needed

    loser_counts = {d: 0 for d in losers}
    capacity = {d: (len(members[d]) - 1) // 2 for d in losers}
    remaining = budget - needed
    while remaining > 0:
        open_districts = [d for d in losers if loser_counts[d] < capacity[d]]
        if not open_districts:
            break
        chosen = rng.choice(open_districts)
        loser_counts[chosen] += 1
        remaining -= 1
    target_counts.update(loser_counts)

    cells = [target.opponent] * shape.cell_count
    for district in sorted(members):
        for index in rng.sample(members[district], target_counts[district]):
            cells[index] = target
    return Grid(width=shape.width, height=shape.height, cells=tuple(cells))

