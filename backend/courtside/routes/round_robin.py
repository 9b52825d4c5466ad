"""
Round robin endpoints: start the event, list rounds, submit scores, standings.
Standings are recomputed from stored rounds on every call.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from courtside.auth import get_current_player_id
from courtside.database import get_session
from courtside.models.round_match import RoundMatch
from courtside.services import scheduling_coordinator
from courtside.services.errors import CourtsideError, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


class StartEventRequest(BaseModel):
    round_count: Optional[int] = None


class ScoreSubmission(BaseModel):
    team1_score: int = Field(ge=0)
    team2_score: int = Field(ge=0)


class RoundResponse(BaseModel):
    id: int
    session_id: int
    round_number: int
    court_number: int
    team1: List[UUID]
    team2: List[UUID]
    bye_players: List[UUID]
    team1_score: Optional[int] = None
    team2_score: Optional[int] = None
    score_entered_by: Optional[UUID] = None
    created_at: datetime


class RoundsResponse(BaseModel):
    rounds: List[RoundResponse]


class LeaderboardEntryResponse(BaseModel):
    player_id: UUID
    wins: int
    losses: int
    total_points: int
    point_differential: int
    games_played: int
    avg_point_differential: float


class StandingsResponse(BaseModel):
    leaderboard: List[LeaderboardEntryResponse]


class ActionResponse(BaseModel):
    success: bool = True


def _round_to_response(m: RoundMatch) -> RoundResponse:
    return RoundResponse(
        id=m.id,
        session_id=m.session_id,
        round_number=m.round_number,
        court_number=m.court_number,
        team1=m.team1,
        team2=m.team2,
        bye_players=m.byes,
        team1_score=m.team1_score,
        team2_score=m.team2_score,
        score_entered_by=m.score_entered_by,
        created_at=m.created_at,
    )


@router.post("/sessions/{session_id}/round-robin/start", response_model=RoundsResponse, status_code=201)
def start_round_robin(
    session_id: int,
    payload: Optional[StartEventRequest] = None,
    session: Session = Depends(get_session),
    player_id: UUID = Depends(get_current_player_id),
):
    """
    Owner-only. Generate the schedule once and move the session to in_progress.

    round_count falls back to the session's round_count, then DEFAULT_ROUND_COUNT.
    A second start (or a concurrent one that lost) gets 409 EVENT_ALREADY_STARTED.
    """
    round_count = payload.round_count if payload else None
    try:
        rounds = scheduling_coordinator.start_event(session, session_id, player_id, round_count=round_count)
    except CourtsideError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Start failed for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail=f"INTERNAL_ERROR: Start failed: {str(e)}")
    return RoundsResponse(rounds=[_round_to_response(m) for m in rounds])


@router.get("/sessions/{session_id}/round-robin/rounds", response_model=RoundsResponse)
def get_rounds(session_id: int, session: Session = Depends(get_session)):
    """Stored schedule, ordered by round then court"""
    try:
        rounds = scheduling_coordinator.list_rounds(session, session_id)
    except CourtsideError as e:
        raise to_http_exception(e)
    return RoundsResponse(rounds=[_round_to_response(m) for m in rounds])


@router.patch("/round-robin/rounds/{round_id}/score", response_model=ActionResponse)
def submit_round_score(
    round_id: int,
    payload: ScoreSubmission,
    session: Session = Depends(get_session),
    player_id: UUID = Depends(get_current_player_id),
):
    """Record or correct a match score. Ties are rejected."""
    try:
        scheduling_coordinator.submit_score(session, round_id, player_id, payload.team1_score, payload.team2_score)
    except CourtsideError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Score submission failed for round {round_id}: {e}")
        raise HTTPException(status_code=500, detail=f"INTERNAL_ERROR: Score submission failed: {str(e)}")
    return ActionResponse()


@router.get("/sessions/{session_id}/round-robin/standings", response_model=StandingsResponse)
def get_standings(session_id: int, session: Session = Depends(get_session)):
    """Leaderboard: wins desc, point differential desc, player id asc"""
    try:
        entries = scheduling_coordinator.get_standings(session, session_id)
    except CourtsideError as e:
        raise to_http_exception(e)
    return StandingsResponse(leaderboard=[LeaderboardEntryResponse(**e.to_dict()) for e in entries])
