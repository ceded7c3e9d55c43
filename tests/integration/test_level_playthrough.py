"""Integration tests playing generated levels through a session."""

from __future__ import annotations

import logging

import pytest

from redistricting.domain.enums import EditError, SessionStatus
from redistricting.domain.generator import generate_level
from redistricting.domain.session import LevelSession
from redistricting.utils.grid_math import from_index


def _play_solution(session: LevelSession, solution) -> list:
    """Move cells one at a time into their solution district until the level ends."""

    results = []
    for index, wanted in enumerate(solution.assignments):
        if session.status.is_terminal:
            break
        coord = from_index(index, solution.width)
        if session.partition.district_of(coord) != wanted:
            results.append(session.assign(coord, wanted))
    return results


@pytest.mark.parametrize("index", [0, 1, 2, 3])
def test_cell_by_cell_playthrough_wins(index, caplog):
    generated = generate_level(index)
    session = LevelSession(generated.level, generated.initial_partition)

    with caplog.at_level(logging.INFO, logger="redistricting.domain.session"):
        results = _play_solution(session, generated.solution)

    assert results
    assert all(result.applied for result in results)
    assert session.status is SessionStatus.WON
    assert session.view().moves_used == len(results)
    assert any("won" in message for message in caplog.messages)

    closed = session.undo()
    assert closed.error is EditError.SESSION_CLOSED


def test_playthrough_can_be_rewound():
    generated = generate_level(seed="rewind")
    session = LevelSession(generated.level, generated.initial_partition)
    grid = generated.level.grid

    # collapsing the board into one district empties the rest, so it never wins
    collapsed = session.assign_many(list(grid.coords()), 1)
    assert collapsed.applied
    assert collapsed.view.status is SessionStatus.EDITING
    assert collapsed.view.outcome is None

    assert session.undo().applied
    assert session.partition == generated.initial_partition
    assert session.view().report.valid
    assert session.reset().view.undo_depth == 0
