"""Exceptions raised by the partition engine."""

from __future__ import annotations

from .enums import EditError


class PartitionEditError(ValueError):
    """Raised when an edit cannot be applied; the partition is left unchanged."""

    code: EditError

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class OutOfBoundsError(PartitionEditError):
    """Raised when a position lies outside the grid."""

    code = EditError.OUT_OF_BOUNDS


class InvalidDistrictIdError(PartitionEditError):
    """Raised when a district id is not one of the level's ``1..K`` ids."""

    code = EditError.INVALID_DISTRICT_ID


class NotAdjacentError(PartitionEditError):
    """Raised when a boundary gesture names cells that do not share an edge."""

    code = EditError.NOT_ADJACENT


class SessionClosedError(RuntimeError):
    """Raised when a finished level session receives another edit."""


class LevelGenerationError(RuntimeError):
    """Raised when the generator cannot produce a playable level."""


class UnsolvableLevelError(LevelGenerationError):
    """Raised when a generated level's own solution fails to validate or win."""
