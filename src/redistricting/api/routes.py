"""HTTP routes for the Redistricting API."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field, model_validator

from redistricting.api.runtime import ApiState, SessionID, SessionRegistry
from redistricting.domain.enums import EditError
from redistricting.domain.partition import BoundaryEdge
from redistricting.domain.session import EditResult, LevelSession
from redistricting.utils.grid_math import GridCoord

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class Coord(BaseModel):
    row: int
    col: int

    def to_grid(self) -> GridCoord:
        return GridCoord(row=self.row, col=self.col)


class DistrictState(BaseModel):
    district_id: int
    size: int
    component_count: int
    connected: bool
    size_ok: bool
    valid: bool
    blue: int | None
    red: int | None
    winner: str | None


class OutcomeSummary(BaseModel):
    districts_won: dict[str, int]
    cells: dict[str, int]
    target_faction: str
    objective_met: bool
    popular_winner: str | None


class SessionState(BaseModel):
    id: int
    status: str
    valid: bool
    partition: list[list[int]]
    districts: list[DistrictState]
    invalid_districts: list[int]
    outcome: OutcomeSummary | None
    moves_used: int
    moves_remaining: int | None
    undo_depth: int


class LevelSummary(BaseModel):
    index: int | None
    seed: str | None
    width: int
    height: int
    grid: list[list[str]]
    district_count: int
    target_faction: str
    min_districts_won: int
    min_district_size: int | None
    max_district_size: int | None
    move_limit: int | None


class SessionDetail(SessionState):
    level: LevelSummary


class CreateSessionRequest(BaseModel):
    level_index: int | None = Field(default=None, ge=0)
    seed: int | str | None = None

    @model_validator(mode="after")
    def _one_source(self) -> CreateSessionRequest:
        if self.level_index is not None and self.seed is not None:
            raise ValueError("provide level_index or seed, not both")
        return self


class AssignRequest(Coord):
    district_id: int


class AssignManyRequest(BaseModel):
    cells: list[Coord] = Field(min_length=1)
    district_id: int


class BoundaryRequest(BaseModel):
    source: Coord
    target: Coord


class DragRequest(BaseModel):
    path: list[Coord] = Field(min_length=1)


class EditResponse(BaseModel):
    applied: bool
    session: SessionState


def _load(state: ApiState, session_id: int) -> LevelSession:
    try:
        return state.sessions.get_session(SessionID(session_id))
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="session not found"
        ) from exc


def _edit_response(session_id: int, result: EditResult) -> EditResponse:
    if not result.applied:
        code = (
            status.HTTP_409_CONFLICT
            if result.error is EditError.SESSION_CLOSED
            else status.HTTP_400_BAD_REQUEST
        )
        raise HTTPException(
            status_code=code,
            detail={"error": str(result.error), "message": result.detail},
        )
    payload = SessionRegistry.to_view_dict(SessionID(session_id), result.view)
    return EditResponse(applied=True, session=SessionState.model_validate(payload))


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "live_sessions": len(state.sessions),
        "tie_winner": str(state.rules.scoring.tie_winner),
    }


@router.get("/rules")
async def rules_overview(state: ApiStateDep) -> dict[str, object]:
    """Expose scoring rules and the level progression for clients."""

    scoring = state.rules.scoring
    generation = state.rules.generation
    return {
        "scoring": {
            "player_faction": str(scoring.player_faction),
            "tie_winner": str(scoring.tie_winner),
            "win_margin": scoring.win_margin,
        },
        "progression": [asdict(shape) for shape in generation.progression],
        "size_tolerance": generation.size_tolerance,
    }


@router.get("/sessions", response_model=list[SessionState])
async def list_sessions(state: ApiStateDep) -> list[SessionState]:
    return [
        SessionState.model_validate(SessionRegistry.to_view_dict(session_id, session.view()))
        for session_id, session in state.sessions.list_sessions()
    ]


@router.post("/sessions", response_model=SessionDetail, status_code=status.HTTP_201_CREATED)
async def create_session(request: CreateSessionRequest, state: ApiStateDep) -> SessionDetail:
    level_index = request.level_index
    if level_index is None and request.seed is None:
        level_index = state.settings.default_level_index
    try:
        session_id, session = state.sessions.create_session(
            level_index=level_index, seed=request.seed
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SessionDetail.model_validate(SessionRegistry.to_detail_dict(session_id, session))


@router.get("/sessions/{session_id}", response_model=SessionDetail)
async def get_session(session_id: int, state: ApiStateDep) -> SessionDetail:
    session = _load(state, session_id)
    return SessionDetail.model_validate(
        SessionRegistry.to_detail_dict(SessionID(session_id), session)
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: int, state: ApiStateDep) -> None:
    try:
        state.sessions.close_session(SessionID(session_id))
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="session not found"
        ) from exc


@router.post("/sessions/{session_id}/assign", response_model=EditResponse)
async def assign_cell(
    session_id: int,
    request: AssignRequest,
    state: ApiStateDep,
) -> EditResponse:
    session = _load(state, session_id)
    result = session.assign(request.to_grid(), request.district_id)
    return _edit_response(session_id, result)


@router.post("/sessions/{session_id}/assign-many", response_model=EditResponse)
async def assign_cells(
    session_id: int,
    request: AssignManyRequest,
    state: ApiStateDep,
) -> EditResponse:
    session = _load(state, session_id)
    result = session.assign_many([cell.to_grid() for cell in request.cells], request.district_id)
    return _edit_response(session_id, result)


@router.post("/sessions/{session_id}/boundary", response_model=EditResponse)
async def swap_boundary(
    session_id: int,
    request: BoundaryRequest,
    state: ApiStateDep,
) -> EditResponse:
    session = _load(state, session_id)
    edge = BoundaryEdge(source=request.source.to_grid(), target=request.target.to_grid())
    return _edit_response(session_id, session.swap_boundary(edge))


@router.post("/sessions/{session_id}/drag", response_model=EditResponse)
async def drag_path(session_id: int, request: DragRequest, state: ApiStateDep) -> EditResponse:
    session = _load(state, session_id)
    result = session.drag([cell.to_grid() for cell in request.path])
    return _edit_response(session_id, result)


@router.post("/sessions/{session_id}/undo", response_model=EditResponse)
async def undo(session_id: int, state: ApiStateDep) -> EditResponse:
    session = _load(state, session_id)
    return _edit_response(session_id, session.undo())


@router.post("/sessions/{session_id}/reset", response_model=EditResponse)
async def reset(session_id: int, state: ApiStateDep) -> EditResponse:
    session = _load(state, session_id)
    return _edit_response(session_id, session.reset())
