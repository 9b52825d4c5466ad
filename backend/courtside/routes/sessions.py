"""
Session endpoints: create, view, cancel, and the capacity-safe join/invite/leave actions.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from courtside.auth import get_current_player_id
from courtside.database import get_session
from courtside.services import reservation_service, scheduling_coordinator
from courtside.services.errors import CourtsideError, to_http_exception
from courtside.utils.roster_types import GameFormat

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionCreate(BaseModel):
    capacity: int = Field(ge=1)
    format: GameFormat = GameFormat.DOUBLES
    friends_only: bool = False
    round_count: Optional[int] = Field(default=None, ge=1)
    location_name: Optional[str] = None
    starts_at: Optional[datetime] = None
    create_group_chat: bool = False

    @field_validator("location_name")
    @classmethod
    def strip_location(cls, v):
        if v is None:
            return None
        return v.strip() or None


class InviteRequest(BaseModel):
    player_id: UUID


class SessionResponse(BaseModel):
    id: int
    owner_id: UUID
    capacity: int
    confirmed_count: int
    spots_remaining: int
    format: str
    friends_only: bool
    is_cancelled: bool
    round_count: Optional[int] = None
    status: str
    location_name: Optional[str] = None
    starts_at: Optional[datetime] = None
    participants: List[UUID] = []
    created_at: datetime


class ActionResponse(BaseModel):
    success: bool = True


def _session_response(session: Session, session_id: int) -> SessionResponse:
    play_session = reservation_service.get_play_session(session, session_id)
    return SessionResponse(
        id=play_session.id,
        owner_id=play_session.owner_id,
        capacity=play_session.capacity,
        confirmed_count=play_session.confirmed_count,
        spots_remaining=play_session.spots_remaining,
        format=play_session.format,
        friends_only=play_session.friends_only,
        is_cancelled=play_session.is_cancelled,
        round_count=play_session.round_count,
        status=play_session.status,
        location_name=play_session.location_name,
        starts_at=play_session.starts_at,
        participants=reservation_service.participant_ids(session, session_id),
        created_at=play_session.created_at,
    )


@router.post("/sessions", response_model=SessionResponse, status_code=201)
def create_session(
    payload: SessionCreate,
    session: Session = Depends(get_session),
    player_id: UUID = Depends(get_current_player_id),
):
    """Create a session; the caller owns it and holds the first spot"""
    try:
        play_session = scheduling_coordinator.create_session(
            session,
            owner_id=player_id,
            capacity=payload.capacity,
            game_format=payload.format,
            friends_only=payload.friends_only,
            round_count=payload.round_count,
            location_name=payload.location_name,
            starts_at=payload.starts_at,
            create_group_chat=payload.create_group_chat,
        )
        return _session_response(session, play_session.id)
    except CourtsideError as e:
        raise to_http_exception(e)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session_detail(session_id: int, session: Session = Depends(get_session)):
    """Session with its confirmed participants"""
    try:
        return _session_response(session, session_id)
    except CourtsideError as e:
        raise to_http_exception(e)


@router.post("/sessions/{session_id}/cancel", response_model=SessionResponse)
def cancel_session(
    session_id: int,
    session: Session = Depends(get_session),
    player_id: UUID = Depends(get_current_player_id),
):
    """Owner-only. Only waiting sessions can be cancelled."""
    try:
        scheduling_coordinator.cancel_session(session, session_id, player_id)
        return _session_response(session, session_id)
    except CourtsideError as e:
        raise to_http_exception(e)


@router.post("/sessions/{session_id}/join", response_model=ActionResponse)
def join_session(
    session_id: int,
    session: Session = Depends(get_session),
    player_id: UUID = Depends(get_current_player_id),
):
    """
    Claim a spot for the caller.

    Rejections (detail is "<CODE>: <message>"):
    - 404 SESSION_NOT_FOUND
    - 409 SESSION_CANCELLED / SESSION_NOT_WAITING / SESSION_FULL / ALREADY_ADMITTED
    - 403 FRIENDS_ONLY
    """
    try:
        reservation_service.join(session, session_id, player_id)
    except CourtsideError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Join failed for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail=f"INTERNAL_ERROR: Join failed: {str(e)}")
    return ActionResponse()


@router.post("/sessions/{session_id}/invite", response_model=ActionResponse)
def invite_to_session(
    session_id: int,
    payload: InviteRequest,
    session: Session = Depends(get_session),
    player_id: UUID = Depends(get_current_player_id),
):
    """
    Claim a spot for another player. The caller must be the owner or a participant.

    Same rejections as join, plus 403 INVITER_NOT_PARTICIPANT.
    """
    try:
        reservation_service.invite(session, session_id, player_id, payload.player_id)
    except CourtsideError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Invite failed for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail=f"INTERNAL_ERROR: Invite failed: {str(e)}")
    return ActionResponse()


@router.post("/sessions/{session_id}/leave", response_model=ActionResponse)
def leave_session(
    session_id: int,
    session: Session = Depends(get_session),
    player_id: UUID = Depends(get_current_player_id),
):
    """Give up the caller's spot while the session is still waiting"""
    try:
        reservation_service.leave(session, session_id, player_id)
    except CourtsideError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Leave failed for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail=f"INTERNAL_ERROR: Leave failed: {str(e)}")
    return ActionResponse()
