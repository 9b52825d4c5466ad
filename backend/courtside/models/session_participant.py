from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtside.models.play_session import PlaySession


class SessionParticipant(SQLModel, table=True):
    """A confirmed seat in a session. One row per (session, player)."""

    __table_args__ = (SAUniqueConstraint("session_id", "player_id", name="uq_participant_session_player"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="playsession.id", index=True)
    player_id: UUID = Field(index=True)
    invited_by: Optional[UUID] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    session: "PlaySession" = Relationship(back_populates="participants")
