"""Runtime primitives backing the Redistricting HTTP API."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import NewType

from redistricting.config import Settings, get_settings
from redistricting.domain.enums import Faction
from redistricting.domain.evaluator import Outcome
from redistricting.domain.generator import generate_level
from redistricting.domain.models import Level
from redistricting.domain.rules_config import RulesConfig, ScoringRules
from redistricting.domain.session import LevelSession, SessionView

logger = logging.getLogger(__name__)

SessionID = NewType("SessionID", int)


class SessionRegistry:
    """In-memory store of live level sessions, oldest evicted first."""

    def __init__(self, *, rules: RulesConfig, max_sessions: int) -> None:
        self._rules = rules
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[SessionID, LevelSession] = OrderedDict()
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._sessions)

    def list_sessions(self) -> list[tuple[SessionID, LevelSession]]:
        """Return every live session ordered by identifier."""

        return list(self._sessions.items())

    def get_session(self, session_id: SessionID) -> LevelSession:
        """Return a live session or raise ``KeyError``."""

        return self._sessions[session_id]

    def create_session(
        self,
        *,
        level_index: int | None = None,
        seed: int | str | None = None,
    ) -> tuple[SessionID, LevelSession]:
        """Generate a level and open a session on it."""

        generated = generate_level(level_index, seed=seed, rules=self._rules)
        session = LevelSession(generated.level, generated.initial_partition, rules=self._rules)
        self._last_id += 1
        session_id = SessionID(self._last_id)
        self._sessions[session_id] = session
        logger.info("opened session %d on level %s", session_id, generated.level.label)

        while len(self._sessions) > self._max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("evicted session %d (limit %d)", evicted, self._max_sessions)
        return session_id, session

    def close_session(self, session_id: SessionID) -> None:
        """Drop a session; raises ``KeyError`` if it is unknown."""

        del self._sessions[session_id]
        logger.info("closed session %d", session_id)

    def clear(self) -> None:
        self._sessions.clear()

    @staticmethod
    def to_level_dict(level: Level) -> dict[str, object]:
        grid = level.grid
        return {
            "index": level.index,
            "seed": level.seed,
            "width": grid.width,
            "height": grid.height,
            "grid": [[str(faction) for faction in row] for row in grid.rows()],
            "district_count": level.district_count,
            "target_faction": str(level.win_condition.target_faction),
            "min_districts_won": level.win_condition.min_districts_won,
            "min_district_size": level.min_district_size,
            "max_district_size": level.max_district_size,
            "move_limit": level.move_limit,
        }

    @staticmethod
    def to_outcome_dict(outcome: Outcome | None) -> dict[str, object] | None:
        if outcome is None:
            return None
        popular = outcome.popular_winner
        return {
            "districts_won": {str(f): count for f, count in outcome.districts_won.items()},
            "cells": {str(f): count for f, count in outcome.cells.items()},
            "target_faction": str(outcome.target_faction),
            "objective_met": outcome.objective_met,
            "popular_winner": str(popular) if popular is not None else None,
        }

    @staticmethod
    def to_view_dict(session_id: SessionID, view: SessionView) -> dict[str, object]:
        """Return a JSON-friendly snapshot of a session's current state."""

        results = view.outcome.results if view.outcome is not None else {}
        districts = []
        for district_id, verdict in sorted(view.report.districts.items()):
            result = results.get(district_id)
            districts.append(
                {
                    "district_id": int(district_id),
                    "size": verdict.size,
                    "component_count": verdict.component_count,
                    "connected": verdict.connected,
                    "size_ok": verdict.size_ok,
                    "valid": verdict.valid,
                    "blue": result.blue if result is not None else None,
                    "red": result.red if result is not None else None,
                    "winner": str(result.winner) if result is not None else None,
                }
            )
        return {
            "id": int(session_id),
            "status": str(view.status),
            "valid": view.report.valid,
            "partition": view.partition.rows(),
            "districts": districts,
            "invalid_districts": [int(d) for d in view.report.invalid_districts()],
            "outcome": SessionRegistry.to_outcome_dict(view.outcome),
            "moves_used": view.moves_used,
            "moves_remaining": view.moves_remaining,
            "undo_depth": view.undo_depth,
        }

    @staticmethod
    def to_detail_dict(session_id: SessionID, session: LevelSession) -> dict[str, object]:
        payload = SessionRegistry.to_view_dict(session_id, session.view())
        payload["level"] = SessionRegistry.to_level_dict(session.level)
        return payload


def rules_from_settings(settings: Settings) -> RulesConfig:
    return RulesConfig(scoring=ScoringRules(tie_winner=Faction(settings.tie_winner)))


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules or rules_from_settings(self.settings)
        self.sessions = SessionRegistry(rules=self.rules, max_sessions=self.settings.max_sessions)

    async def shutdown(self) -> None:
        logger.info("shutting down with %d live sessions", len(self.sessions))
        self.sessions.clear()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
