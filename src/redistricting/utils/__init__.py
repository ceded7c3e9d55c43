"""Utility functions for the Redistricting engine."""

from redistricting.utils.grid_math import (
    GridCoord,
    are_adjacent,
    grid_neighbors,
    in_bounds,
    serpentine_order,
)
from redistricting.utils.rng import (
    derive_seed,
    generate_seed,
    make_rng,
    seed_to_int,
)

__all__ = [
    "GridCoord",
    "are_adjacent",
    "derive_seed",
    "generate_seed",
    "grid_neighbors",
    "in_bounds",
    "make_rng",
    "seed_to_int",
    "serpentine_order",
]
