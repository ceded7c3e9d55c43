"""Tests for the level session state machine."""

from __future__ import annotations

import pytest

from redistricting.domain.enums import EditError, Faction, SessionStatus
from redistricting.domain.models import DistrictID, Grid, Level, Partition, WinCondition
from redistricting.domain.partition import BoundaryEdge
from redistricting.domain.session import LevelSession
from redistricting.utils.grid_math import GridCoord

VERTICAL = Partition.from_rows([[1, 1, 2, 2]] * 4)
TOP_RIGHT = [GridCoord(row=r, col=c) for r in (0, 1) for c in (2, 3)]
BOTTOM_LEFT = [GridCoord(row=r, col=c) for r in (2, 3) for c in (0, 1)]


def _level(move_limit: int | None = None) -> Level:
    # Horizontal halves give blue 5 of 8 cells in both districts; vertical halves do not.
    return Level(
        grid=Grid.from_rows(["BBBR", "BBRR", "BBBR", "BBRR"]),
        district_count=2,
        win_condition=WinCondition(target_faction=Faction.BLUE, min_districts_won=2),
        min_district_size=8,
        max_district_size=8,
        move_limit=move_limit,
    )


@pytest.fixture
def session() -> LevelSession:
    return LevelSession(_level(), VERTICAL)


class TestEditing:
    def test_starts_editing_with_valid_losing_partition(self, session):
        view = session.view()
        assert view.status is SessionStatus.EDITING
        assert view.report.valid
        assert view.outcome is not None
        assert view.outcome.districts_won == {Faction.BLUE: 1, Faction.RED: 1}
        assert view.moves_remaining is None

    def test_applied_edit_counts_a_move(self, session):
        result = session.assign(GridCoord(row=0, col=2), 1)
        assert result.applied
        assert result.view.moves_used == 1
        assert result.view.undo_depth == 1
        assert not result.view.report.valid
        assert result.view.outcome is None

    def test_no_change_edit_is_not_a_move(self, session):
        result = session.assign(GridCoord(row=0, col=0), 1)
        assert result.applied
        assert result.view.moves_used == 0
        assert result.view.undo_depth == 0

    def test_invalid_district_is_rejected(self, session):
        result = session.assign(GridCoord(row=0, col=0), 0)
        assert not result.applied
        assert result.error is EditError.INVALID_DISTRICT_ID
        assert session.partition == VERTICAL

    def test_out_of_bounds_is_rejected(self, session):
        result = session.assign_many([GridCoord(row=0, col=2), GridCoord(row=7, col=7)], 1)
        assert result.error is EditError.OUT_OF_BOUNDS
        assert session.partition == VERTICAL

    def test_boundary_and_drag_edits(self, session):
        edge = BoundaryEdge(source=GridCoord(row=0, col=1), target=GridCoord(row=0, col=2))
        assert session.swap_boundary(edge).applied
        assert session.partition.district_of(GridCoord(row=0, col=2)) == 1

        result = session.drag([GridCoord(row=0, col=2), GridCoord(row=2, col=2)])
        assert result.error is EditError.NOT_ADJACENT


class TestLifecycle:
    def test_winning_partition_ends_the_level(self, session):
        session.assign_many(TOP_RIGHT, 1)
        result = session.assign_many(BOTTOM_LEFT, 2)

        assert result.view.status is SessionStatus.WON
        assert result.view.outcome is not None
        assert result.view.outcome.objective_met

        rejected = session.assign(GridCoord(row=0, col=0), 2)
        assert not rejected.applied
        assert rejected.error is EditError.SESSION_CLOSED
        assert session.undo().error is EditError.SESSION_CLOSED
        assert session.reset().error is EditError.SESSION_CLOSED

    def test_disconnected_start_stays_editing(self):
        split = Partition.from_rows([[1] * 4, [2] * 4, [2] * 4, [1] * 4])
        session = LevelSession(_level(), split)
        view = session.view()
        assert view.status is SessionStatus.EDITING
        assert view.report.disconnected_districts() == [DistrictID(1)]
        assert view.outcome is None

    def test_move_limit_fails_the_level(self):
        session = LevelSession(_level(move_limit=1), VERTICAL)
        assert session.view().moves_remaining == 1

        result = session.assign(GridCoord(row=0, col=2), 1)
        assert result.view.status is SessionStatus.FAILED
        assert result.view.moves_remaining == 0
        assert session.assign(GridCoord(row=0, col=3), 1).error is EditError.SESSION_CLOSED

    def test_rejects_partition_of_wrong_size(self):
        with pytest.raises(ValueError, match="dimensions"):
            LevelSession(_level(), Partition.uniform(2, 2, DistrictID(1)))


class TestHistory:
    def test_undo_restores_previous_snapshot(self, session):
        session.assign(GridCoord(row=0, col=2), 1)
        result = session.undo()
        assert result.applied
        assert session.partition == VERTICAL
        assert result.view.report.valid
        assert result.view.undo_depth == 0
        # undo does not refund the move
        assert result.view.moves_used == 1

    def test_nothing_to_undo(self, session):
        result = session.undo()
        assert not result.applied
        assert result.error is EditError.NOTHING_TO_UNDO

    def test_reset_returns_to_start(self, session):
        session.assign(GridCoord(row=0, col=2), 1)
        session.assign(GridCoord(row=0, col=3), 1)
        result = session.reset()
        assert result.applied
        assert session.partition == VERTICAL
        assert result.view.undo_depth == 0
        assert result.view.status is SessionStatus.EDITING
