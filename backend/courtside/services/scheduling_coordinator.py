"""
Scheduling Coordinator

Owns the session lifecycle around the round robin:
1. Create / cancel sessions (owner becomes the first confirmed participant)
2. Start the event exactly once: status flip waiting -> in_progress is a
   conditional UPDATE, and the generated rounds are inserted in the same
   transaction, so a double start or a failed insert leaves no schedule behind
3. Record scores; the session completes when every match has a score
4. Recompute standings from stored rounds on every request
"""

import logging
import os
import random
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlmodel import Session, select

from courtside.models.group_chat import GroupChat, GroupChatMember
from courtside.models.play_session import PlaySession
from courtside.models.round_match import RoundMatch
from courtside.models.session_participant import SessionParticipant
from courtside.services.errors import (
    AdmissionInProgressError,
    EventAlreadyStartedError,
    EventNotStartedError,
    ForbiddenError,
    NotSessionOwnerError,
    RoundNotFoundError,
    SessionCancelledError,
    SessionNotWaitingError,
    ValidationError,
)
from courtside.services.reservation_service import (
    count_participants,
    get_play_session,
    is_participant,
    participant_ids,
)
from courtside.services.standings import compute_leaderboard
from courtside.utils.round_robin import MIN_PLAYERS, generate_schedule
from courtside.utils.roster_types import GameFormat, LeaderboardEntry, RoundSchedule, SessionStatus

logger = logging.getLogger(__name__)

DEFAULT_ROUND_COUNT = int(os.getenv("DEFAULT_ROUND_COUNT", "5"))
MAX_ROUND_COUNT = int(os.getenv("MAX_ROUND_COUNT", "50"))
MIN_DOUBLES_PLAYERS = 4


# ============================================================================
# Session lifecycle
# ============================================================================


def create_session(
    session: Session,
    owner_id: UUID,
    capacity: int,
    game_format: GameFormat,
    friends_only: bool = False,
    round_count: Optional[int] = None,
    location_name: Optional[str] = None,
    starts_at=None,
    create_group_chat: bool = False,
) -> PlaySession:
    """Create a session with the owner already holding one of the spots."""
    if capacity < 1:
        raise ValidationError("capacity must be >= 1")
    if round_count is not None and not 1 <= round_count <= MAX_ROUND_COUNT:
        raise ValidationError(f"round_count must be between 1 and {MAX_ROUND_COUNT}")

    play_session = PlaySession(
        owner_id=owner_id,
        capacity=capacity,
        confirmed_count=1,
        format=GameFormat(game_format).value,
        friends_only=friends_only,
        round_count=round_count,
        location_name=location_name,
        starts_at=starts_at,
    )
    session.add(play_session)
    session.flush()
    session.add(SessionParticipant(session_id=play_session.id, player_id=owner_id))

    if create_group_chat:
        chat = GroupChat(session_id=play_session.id, name=location_name or f"Session {play_session.id}", created_by=owner_id)
        session.add(chat)
        session.flush()
        session.add(GroupChatMember(group_chat_id=chat.id, player_id=owner_id, role="admin"))

    session.commit()
    session.refresh(play_session)
    logger.info(f"Session {play_session.id} created by {owner_id} (capacity {capacity}, {play_session.format})")
    return play_session


def cancel_session(session: Session, session_id: int, caller_id: UUID) -> PlaySession:
    play_session = get_play_session(session, session_id)
    if play_session.owner_id != caller_id:
        raise NotSessionOwnerError()

    result = session.execute(
        update(PlaySession)
        .where(
            PlaySession.id == session_id,
            PlaySession.is_cancelled == False,  # noqa: E712
            PlaySession.status == SessionStatus.WAITING.value,
        )
        .values(is_cancelled=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        session.rollback()
        session.refresh(play_session)
        if play_session.is_cancelled:
            raise SessionCancelledError()
        raise SessionNotWaitingError()

    session.commit()
    session.refresh(play_session)
    logger.info(f"Session {session_id} cancelled by owner")
    return play_session


# ============================================================================
# Round robin
# ============================================================================


def _resolve_round_count(play_session: PlaySession, round_count: Optional[int]) -> int:
    count = round_count if round_count is not None else (play_session.round_count or DEFAULT_ROUND_COUNT)
    if not 1 <= count <= MAX_ROUND_COUNT:
        raise ValidationError(f"round_count must be between 1 and {MAX_ROUND_COUNT}")
    return count


def _check_roster_size(game_format: GameFormat, player_count: int) -> None:
    if player_count < MIN_PLAYERS:
        raise ValidationError(f"Need at least {MIN_PLAYERS} players to start")
    if game_format.is_doubles and player_count < MIN_DOUBLES_PLAYERS:
        raise ValidationError(f"Need at least {MIN_DOUBLES_PLAYERS} players to start a {game_format.value} round robin")


def _rows_for_schedule(session_id: int, schedule: List[RoundSchedule]) -> List[RoundMatch]:
    rows: List[RoundMatch] = []
    for round_schedule in schedule:
        byes = [str(p) for p in round_schedule.byes]
        for slot in round_schedule.matches:
            rows.append(
                RoundMatch(
                    session_id=session_id,
                    round_number=round_schedule.round_number,
                    court_number=slot.court,
                    team1_player1=slot.team1[0],
                    team1_player2=slot.team1[1] if len(slot.team1) > 1 else None,
                    team2_player1=slot.team2[0],
                    team2_player2=slot.team2[1] if len(slot.team2) > 1 else None,
                    bye_players=byes,
                )
            )
    return rows


def start_event(
    session: Session,
    session_id: int,
    caller_id: UUID,
    round_count: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[RoundMatch]:
    """
    Generate and persist the round robin for a waiting session.

    Raises:
        SessionNotFoundError, NotSessionOwnerError, SessionCancelledError
        ValidationError: bad round_count, or too few participants for the format
        EventAlreadyStartedError: status was no longer waiting at the flip
        AdmissionInProgressError: a claimed spot has no participant row yet
    """
    play_session = get_play_session(session, session_id)
    if play_session.owner_id != caller_id:
        raise NotSessionOwnerError()
    if play_session.is_cancelled:
        raise SessionCancelledError()
    if play_session.status != SessionStatus.WAITING.value:
        raise EventAlreadyStartedError()

    num_rounds = _resolve_round_count(play_session, round_count)
    game_format = GameFormat(play_session.format)
    _check_roster_size(game_format, count_participants(session, session_id))

    # The flip, the roster read and the inserts share one transaction
    session.rollback()
    result = session.execute(
        update(PlaySession)
        .where(
            PlaySession.id == session_id,
            PlaySession.status == SessionStatus.WAITING.value,
            PlaySession.is_cancelled == False,  # noqa: E712
        )
        .values(status=SessionStatus.IN_PROGRESS.value, round_count=num_rounds)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        session.rollback()
        logger.info(f"Session {session_id} start rejected: already started or cancelled")
        raise EventAlreadyStartedError()

    try:
        # No claim can succeed once status has left waiting, so this roster is final
        players = participant_ids(session, session_id)
        confirmed = session.exec(select(PlaySession.confirmed_count).where(PlaySession.id == session_id)).one()
        if confirmed != len(players):
            logger.info(
                f"Session {session_id} start rejected: {confirmed} spots claimed, {len(players)} participant rows"
            )
            raise AdmissionInProgressError()
        _check_roster_size(game_format, len(players))

        rows = _rows_for_schedule(session_id, generate_schedule(players, num_rounds, game_format, rng=rng))
        session.add_all(rows)
        session.commit()
    except BaseException:
        session.rollback()
        raise

    logger.info(
        f"Session {session_id} started: {len(players)} players, {num_rounds} rounds, "
        f"{len(rows)} matches ({game_format.value})"
    )
    return list_rounds(session, session_id)


def list_rounds(session: Session, session_id: int) -> List[RoundMatch]:
    """Stored rounds in schedule order (round, then court)."""
    get_play_session(session, session_id)
    return list(
        session.exec(
            select(RoundMatch)
            .where(RoundMatch.session_id == session_id)
            .order_by(RoundMatch.round_number, RoundMatch.court_number)
        ).all()
    )


def submit_score(
    session: Session,
    round_id: int,
    caller_id: UUID,
    team1_score: int,
    team2_score: int,
) -> RoundMatch:
    """
    Record (or correct) the score of one match.

    Only participants and the owner may submit. When the last unscored match
    of the session gets a score, the session moves to completed.
    """
    if team1_score < 0 or team2_score < 0:
        raise ValidationError("Scores must be non-negative")
    if team1_score == team2_score:
        raise ValidationError("Scores cannot be tied")

    match = session.get(RoundMatch, round_id)
    if not match:
        raise RoundNotFoundError()

    play_session = get_play_session(session, match.session_id)
    if caller_id != play_session.owner_id and not is_participant(session, play_session.id, caller_id):
        raise ForbiddenError("Only session participants can submit scores")
    if play_session.status == SessionStatus.WAITING.value:
        raise EventNotStartedError()

    match.team1_score = team1_score
    match.team2_score = team2_score
    match.score_entered_by = caller_id
    session.add(match)
    session.flush()

    unscored = session.exec(
        select(RoundMatch.id).where(
            RoundMatch.session_id == play_session.id,
            or_(RoundMatch.team1_score.is_(None), RoundMatch.team2_score.is_(None)),
        )
    ).first()
    if unscored is None and play_session.status == SessionStatus.IN_PROGRESS.value:
        play_session.status = SessionStatus.COMPLETED.value
        session.add(play_session)
        logger.info(f"Session {play_session.id} completed: all matches scored")

    session.commit()
    session.refresh(match)
    logger.info(f"Score {team1_score}-{team2_score} recorded for round {round_id} by {caller_id}")
    return match


def get_standings(session: Session, session_id: int) -> List[LeaderboardEntry]:
    """Leaderboard recomputed from every stored round of the session."""
    return compute_leaderboard(list_rounds(session, session_id))
