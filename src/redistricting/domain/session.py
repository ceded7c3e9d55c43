"""Level session: the state machine driving one level.

A session owns the current partition. Each edit runs in two phases:

1. *mutate*: an edit function from :mod:`.partition` produces a candidate
   partition (or raises, in which case nothing changes);
2. *derive*: the touched districts are re-validated and the outcome is
   re-evaluated against the new partition.

``EDITING`` moves to ``WON`` as soon as a derive pass finds a valid
partition that meets the objective, and to ``FAILED`` when a level with a
move limit runs out of moves first. Both are terminal: later edits are
rejected with :attr:`EditError.SESSION_CLOSED`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from redistricting.utils.grid_math import GridCoord

from . import partition as edits
from .enums import EditError, SessionStatus
from .errors import PartitionEditError, SessionClosedError
from .evaluator import Outcome, evaluate_outcome
from .models import DistrictID, Level, Partition
from .rules_config import DEFAULT_RULES, RulesConfig
from .validator import ValidationReport, revalidate, validate_partition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionView:
    """Everything the presentation layer needs after an edit."""

    partition: Partition
    report: ValidationReport
    outcome: Outcome | None
    status: SessionStatus
    moves_used: int
    moves_remaining: int | None
    undo_depth: int


@dataclass(frozen=True, slots=True)
class EditResult:
    """Result of an edit request; ``view`` is the state after the request."""

    applied: bool
    view: SessionView
    error: EditError | None = None
    detail: str | None = None


class LevelSession:
    """Holds a level's current partition and derived state."""

    def __init__(
        self,
        level: Level,
        initial_partition: Partition,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        grid = level.grid
        if (initial_partition.width, initial_partition.height) != (grid.width, grid.height):
            raise ValueError("initial partition does not match the grid dimensions")
        self.level = level
        self.rules = rules
        self._initial = initial_partition
        self._lock = threading.RLock()
        self._history: list[Partition] = []
        self._moves_used = 0
        self._partition = initial_partition
        self._report = self._full_report(initial_partition)
        self._outcome = evaluate_outcome(level, initial_partition, self._report, rules=rules)
        self._status = SessionStatus.EDITING
        self._update_status()

    # --- read side ------------------------------------------------------------

    @property
    def partition(self) -> Partition:
        return self._partition

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def report(self) -> ValidationReport:
        return self._report

    @property
    def outcome(self) -> Outcome | None:
        return self._outcome

    @property
    def moves_remaining(self) -> int | None:
        if self.level.move_limit is None:
            return None
        return max(self.level.move_limit - self._moves_used, 0)

    def view(self) -> SessionView:
        with self._lock:
            return SessionView(
                partition=self._partition,
                report=self._report,
                outcome=self._outcome,
                status=self._status,
                moves_used=self._moves_used,
                moves_remaining=self.moves_remaining,
                undo_depth=len(self._history),
            )

    # --- edits ----------------------------------------------------------------

    def assign(self, coord: GridCoord, district_id: int) -> EditResult:
        return self._apply(
            lambda p: edits.assign(p, coord, district_id, district_count=self.level.district_count)
        )

    def assign_many(self, coords: Sequence[GridCoord], district_id: int) -> EditResult:
        return self._apply(
            lambda p: edits.assign_many(
                p, coords, district_id, district_count=self.level.district_count
            )
        )

    def swap_boundary(self, edge: edits.BoundaryEdge) -> EditResult:
        return self._apply(
            lambda p: edits.swap_boundary(p, edge, district_count=self.level.district_count)
        )

    def drag(self, path: Sequence[GridCoord]) -> EditResult:
        return self._apply(
            lambda p: edits.drag(p, path, district_count=self.level.district_count)
        )

    def undo(self) -> EditResult:
        """Restore the snapshot before the last applied edit."""

        with self._lock:
            try:
                self._ensure_open()
            except SessionClosedError as exc:
                return self._rejected(EditError.SESSION_CLOSED, str(exc))
            if not self._history:
                return self._rejected(EditError.NOTHING_TO_UNDO, "no edit to undo")
            previous = self._history.pop()
            self._derive(previous)
            return EditResult(applied=True, view=self.view())

    def reset(self) -> EditResult:
        """Return to the level's starting partition and clear the undo history."""

        with self._lock:
            try:
                self._ensure_open()
            except SessionClosedError as exc:
                return self._rejected(EditError.SESSION_CLOSED, str(exc))
            self._history.clear()
            self._partition = self._initial
            self._report = self._full_report(self._initial)
            self._outcome = evaluate_outcome(
                self.level, self._initial, self._report, rules=self.rules
            )
            self._update_status()
            return EditResult(applied=True, view=self.view())

    # --- internals ------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._status.is_terminal:
            raise SessionClosedError(f"level is over ({self._status}); no further edits allowed")

    def _rejected(self, error: EditError, detail: str) -> EditResult:
        return EditResult(applied=False, view=self.view(), error=error, detail=detail)

    def _apply(self, edit: Callable[[Partition], Partition]) -> EditResult:
        with self._lock:
            try:
                self._ensure_open()
                candidate = edit(self._partition)
            except SessionClosedError as exc:
                return self._rejected(EditError.SESSION_CLOSED, str(exc))
            except PartitionEditError as exc:
                return self._rejected(exc.code, exc.message)

            if candidate.assignments != self._partition.assignments:
                self._history.append(self._partition)
                self._moves_used += 1
                self._derive(candidate)
            return EditResult(applied=True, view=self.view())

    def _full_report(self, partition: Partition) -> ValidationReport:
        return validate_partition(
            self.level.grid,
            partition,
            district_count=self.level.district_count,
            min_size=self.level.min_district_size,
            max_size=self.level.max_district_size,
        )

    def _derive(self, candidate: Partition) -> None:
        touched: set[DistrictID] = edits.changed_districts(self._partition, candidate)
        report = revalidate(
            self.level.grid,
            candidate,
            self._report,
            touched,
            district_count=self.level.district_count,
            min_size=self.level.min_district_size,
            max_size=self.level.max_district_size,
        )
        self._partition = candidate
        self._report = report
        self._outcome = evaluate_outcome(self.level, candidate, report, rules=self.rules)
        self._update_status()

    def _update_status(self) -> None:
        if self._status.is_terminal:
            return
        if self._outcome is not None and self._outcome.objective_met:
            self._status = SessionStatus.WON
            logger.info(
                "level %s won after %d moves", self.level.label, self._moves_used
            )
        elif self.level.move_limit is not None and self._moves_used >= self.level.move_limit:
            self._status = SessionStatus.FAILED
            logger.info("level %s failed: move limit reached", self.level.label)
