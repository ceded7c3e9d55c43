"""Enumerations used across the Redistricting domain."""

from __future__ import annotations

from enum import StrEnum


class Faction(StrEnum):
    """The two sides owning grid cells.

    ``BLUE`` is the player's faction by default, ``RED`` the opposition.
    """

    BLUE = "blue"
    RED = "red"

    @property
    def opponent(self) -> Faction:
        return Faction.RED if self is Faction.BLUE else Faction.BLUE


class SessionStatus(StrEnum):
    """Level session lifecycle states."""

    EDITING = "editing"
    WON = "won"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.EDITING


class EditError(StrEnum):
    """Reasons an edit request is rejected."""

    OUT_OF_BOUNDS = "out_of_bounds"
    INVALID_DISTRICT_ID = "invalid_district_id"
    NOT_ADJACENT = "not_adjacent"
    SESSION_CLOSED = "session_closed"
    NOTHING_TO_UNDO = "nothing_to_undo"
