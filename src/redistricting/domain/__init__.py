"""District partition engine for Redistricting.

This package holds every game rule and operates purely in memory:

* Dataclasses for the grid, partitions and levels (see :mod:`models`).
* Pure edit operations producing new partitions (see :mod:`partition`).
* The region validator and the outcome evaluator.
* The level session state machine and the level generator.
* Rule configuration objects (see :mod:`rules_config`).
"""

from . import (
    enums,
    errors,
    evaluator,
    generator,
    models,
    partition,
    rules_config,
    session,
    validator,
)

__all__ = [
    "enums",
    "errors",
    "evaluator",
    "generator",
    "models",
    "partition",
    "rules_config",
    "session",
    "validator",
]
