"""Declarative rule configuration for the partition engine."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import Faction


@dataclass(frozen=True, slots=True)
class LevelShape:
    """Board dimensions and district count for one level."""

    width: int
    height: int
    district_count: int
    move_limit: int | None = None

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    @property
    def district_size(self) -> int:
        """Nominal number of cells per district."""

        return self.cell_count // self.district_count


@dataclass(frozen=True, slots=True)
class ScoringRules:
    """How district winners and the level objective are decided."""

    player_faction: Faction = Faction.BLUE
    tie_winner: Faction = Faction.BLUE
    win_margin: int = 1  # districts needed = K // 2 + win_margin


@dataclass(frozen=True, slots=True)
class GenerationRules:
    """Level generator tuning."""

    progression: tuple[LevelShape, ...] = (
        LevelShape(width=5, height=3, district_count=3),
        LevelShape(width=5, height=5, district_count=5),
        LevelShape(width=6, height=5, district_count=6),
        LevelShape(width=7, height=5, district_count=7),
        LevelShape(width=7, height=7, district_count=7),
        LevelShape(width=9, height=7, district_count=9),
        LevelShape(width=9, height=9, district_count=9),
    )
    size_tolerance: int = 1  # districts may deviate this many cells from nominal
    moves_per_cell: int = 3  # boundary perturbation steps per grid cell
    initial_candidates: int = 6  # starting layouts tried per attempt
    max_attempts: int = 25

    def shape_for(self, index: int) -> LevelShape:
        """Return the shape of level ``index``; indices past the end reuse the last."""

        if index < 0:
            raise ValueError(f"level index must be non-negative, got {index}")
        return self.progression[min(index, len(self.progression) - 1)]


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container."""

    scoring: ScoringRules = ScoringRules()
    generation: GenerationRules = GenerationRules()


DEFAULT_RULES = RulesConfig()
