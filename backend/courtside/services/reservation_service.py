"""
Session Reservation Service

Admits players into capacity-limited sessions (self-join or invite) without
ever letting confirmed_count exceed capacity:

1. Advisory pre-checks (exists, not cancelled, not full, inviter allowed,
   not already admitted, friends-only gate). Cheap rejections only; they are
   not what keeps the count correct.
2. Claim a spot with ONE conditional UPDATE
   (confirmed_count = confirmed_count + 1 WHERE confirmed_count < capacity).
   This statement is the only writer that raises the count and it commits on
   its own, so concurrent callers serialize in the database.
3. Insert the participant row. If that fails for any reason the claimed spot
   is released with a compensating decrement before the error propagates.
4. Add the player to the session's linked group chat (best effort).

No retries: a lost race is reported as SESSION_FULL.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from courtside.models.friendship import Friendship
from courtside.models.group_chat import GroupChat, GroupChatMember
from courtside.models.play_session import PlaySession
from courtside.models.session_participant import SessionParticipant
from courtside.services.errors import (
    AlreadyAdmittedError,
    CapacityLeakError,
    FriendsOnlyError,
    InviterNotParticipantError,
    NotParticipantError,
    OwnerCannotLeaveError,
    SessionCancelledError,
    SessionFullError,
    SessionNotFoundError,
    SessionNotWaitingError,
)
from courtside.utils.roster_types import SessionStatus

logger = logging.getLogger(__name__)

FRIENDSHIP_ACCEPTED = "accepted"


@dataclass(frozen=True)
class Admission:
    session_id: int
    player_id: UUID
    invited_by: Optional[UUID] = None
    added_to_group_chat: bool = False


# ============================================================================
# Lookups
# ============================================================================


def get_play_session(session: Session, session_id: int) -> PlaySession:
    play_session = session.get(PlaySession, session_id)
    if not play_session:
        raise SessionNotFoundError()
    return play_session


def is_participant(session: Session, session_id: int, player_id: UUID) -> bool:
    row = session.exec(
        select(SessionParticipant.id).where(
            SessionParticipant.session_id == session_id,
            SessionParticipant.player_id == player_id,
        )
    ).first()
    return row is not None


def participant_ids(session: Session, session_id: int) -> list[UUID]:
    """Participant player ids in admission order."""
    return list(
        session.exec(
            select(SessionParticipant.player_id)
            .where(SessionParticipant.session_id == session_id)
            .order_by(SessionParticipant.id)
        ).all()
    )


def count_participants(session: Session, session_id: int) -> int:
    return session.exec(
        select(func.count(SessionParticipant.id)).where(SessionParticipant.session_id == session_id)
    ).one()


def are_friends(session: Session, player_a: UUID, player_b: UUID) -> bool:
    """Accepted friendship edge in either direction."""
    row = session.exec(
        select(Friendship.id).where(
            Friendship.status == FRIENDSHIP_ACCEPTED,
            or_(
                and_(Friendship.user_id == player_a, Friendship.friend_id == player_b),
                and_(Friendship.user_id == player_b, Friendship.friend_id == player_a),
            ),
        )
    ).first()
    return row is not None


# ============================================================================
# Counter mutations (the only statements that touch confirmed_count)
# ============================================================================


def claim_spot(session: Session, session_id: int) -> bool:
    """Increment confirmed_count iff the session is open and still below capacity. Caller commits."""
    result = session.execute(
        update(PlaySession)
        .where(
            PlaySession.id == session_id,
            PlaySession.confirmed_count < PlaySession.capacity,
            PlaySession.is_cancelled == False,  # noqa: E712
            PlaySession.status == SessionStatus.WAITING.value,
        )
        .values(confirmed_count=PlaySession.confirmed_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def release_spot(session: Session, session_id: int) -> bool:
    """Decrement confirmed_count, never below zero. Caller commits."""
    result = session.execute(
        update(PlaySession)
        .where(PlaySession.id == session_id, PlaySession.confirmed_count > 0)
        .values(confirmed_count=PlaySession.confirmed_count - 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _claim_rejection(session: Session, session_id: int, player_id: UUID) -> Exception:
    """Why the conditional claim matched no row: lost race for the last spot, or the session changed state."""
    play_session = session.get(PlaySession, session_id)
    if play_session is None:
        return SessionNotFoundError()
    if play_session.is_cancelled:
        return SessionCancelledError()
    if play_session.status != SessionStatus.WAITING.value:
        return SessionNotWaitingError()
    logger.info(f"Session {session_id} filled before {player_id} could claim a spot")
    return SessionFullError()


def _insert_participant(session: Session, session_id: int, player_id: UUID, invited_by: Optional[UUID]) -> None:
    session.add(SessionParticipant(session_id=session_id, player_id=player_id, invited_by=invited_by))
    session.flush()


def _compensate(session: Session, session_id: int, player_id: UUID) -> None:
    """Give back a spot claimed for a participant row that never landed."""
    try:
        released = release_spot(session, session_id)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Compensation failed for session {session_id}, player {player_id}: {e}")
        raise CapacityLeakError() from e
    if released:
        logger.warning(f"Released spot on session {session_id} after failed admission of {player_id}")
    else:
        logger.error(f"Compensation for session {session_id} matched no row; confirmed_count already 0")


# ============================================================================
# Group chat
# ============================================================================


def add_to_linked_group_chat(session: Session, session_id: int, player_id: UUID) -> bool:
    """Add the player to the session's group chat if one exists. Returns True if a member row was created."""
    chat = session.exec(select(GroupChat).where(GroupChat.session_id == session_id)).first()
    if not chat:
        return False

    existing = session.exec(
        select(GroupChatMember.id).where(
            GroupChatMember.group_chat_id == chat.id,
            GroupChatMember.player_id == player_id,
        )
    ).first()
    if existing:
        return False

    session.add(GroupChatMember(group_chat_id=chat.id, player_id=player_id, role="member"))
    session.commit()
    return True


# ============================================================================
# Public operations
# ============================================================================


def reserve(session: Session, session_id: int, requesting_player: UUID, target_player: UUID) -> Admission:
    """
    Admit target_player into the session on behalf of requesting_player.

    Raises:
        SessionNotFoundError, SessionCancelledError, SessionNotWaitingError,
        SessionFullError, InviterNotParticipantError, AlreadyAdmittedError,
        FriendsOnlyError: admission rejected, nothing written
        CapacityLeakError: participant insert failed AND the spot could not be released
        Any other exception from the participant insert, after the spot was released
    """
    is_invite = requesting_player != target_player
    play_session = get_play_session(session, session_id)

    if play_session.is_cancelled:
        raise SessionCancelledError()
    if play_session.status != SessionStatus.WAITING.value:
        raise SessionNotWaitingError()
    if play_session.confirmed_count >= play_session.capacity:
        raise SessionFullError()
    if is_invite and requesting_player != play_session.owner_id:
        if not is_participant(session, session_id, requesting_player):
            raise InviterNotParticipantError()
    if is_participant(session, session_id, target_player):
        raise AlreadyAdmittedError()
    if play_session.friends_only and target_player != play_session.owner_id:
        if not are_friends(session, target_player, play_session.owner_id):
            raise FriendsOnlyError()

    # Close the read transaction so the claim starts a fresh write
    session.rollback()

    if not claim_spot(session, session_id):
        session.rollback()
        raise _claim_rejection(session, session_id, target_player)
    session.commit()

    invited_by = requesting_player if is_invite else None
    try:
        _insert_participant(session, session_id, target_player, invited_by)
        session.commit()
    except BaseException as exc:
        # BaseException: an interrupted request must still hand the spot back
        session.rollback()
        _compensate(session, session_id, target_player)
        if isinstance(exc, IntegrityError):
            raise AlreadyAdmittedError() from exc
        raise

    added_to_chat = False
    try:
        added_to_chat = add_to_linked_group_chat(session, session_id, target_player)
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(f"Could not add {target_player} to group chat of session {session_id}: {e}")

    logger.info(
        f"Admitted {target_player} to session {session_id}"
        + (f" (invited by {requesting_player})" if is_invite else "")
    )
    return Admission(
        session_id=session_id,
        player_id=target_player,
        invited_by=invited_by,
        added_to_group_chat=added_to_chat,
    )


def join(session: Session, session_id: int, player_id: UUID) -> Admission:
    return reserve(session, session_id, player_id, player_id)


def invite(session: Session, session_id: int, inviter_id: UUID, invitee_id: UUID) -> Admission:
    return reserve(session, session_id, inviter_id, invitee_id)


def leave(session: Session, session_id: int, player_id: UUID) -> None:
    """
    Give up a confirmed seat. Only while the session is waiting; the owner
    cannot leave. Row delete and decrement commit together.
    """
    play_session = get_play_session(session, session_id)
    if play_session.is_cancelled:
        raise SessionCancelledError()
    if play_session.status != SessionStatus.WAITING.value:
        raise SessionNotWaitingError()
    if player_id == play_session.owner_id:
        raise OwnerCannotLeaveError()

    deleted = session.execute(
        delete(SessionParticipant)
        .where(
            SessionParticipant.session_id == session_id,
            SessionParticipant.player_id == player_id,
        )
        .execution_options(synchronize_session=False)
    )
    if deleted.rowcount != 1:
        session.rollback()
        raise NotParticipantError()

    release_spot(session, session_id)
    session.commit()
    logger.info(f"Player {player_id} left session {session_id}")
