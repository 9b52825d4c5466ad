from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import CheckConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtside.models.round_match import RoundMatch
    from courtside.models.session_participant import SessionParticipant


class PlaySession(SQLModel, table=True):
    """
    A capacity-limited play session.

    confirmed_count is only ever changed through conditional UPDATE statements
    in the reservation service; the CHECK constraint is the storage-level backstop.
    """

    __table_args__ = (
        CheckConstraint("confirmed_count >= 0 AND confirmed_count <= capacity", name="ck_playsession_capacity"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: UUID = Field(index=True)
    capacity: int  # spots available
    confirmed_count: int = Field(default=0)  # spots filled
    format: str = Field(default="doubles")  # "singles" | "doubles" | "mixed_doubles" | "drill"
    friends_only: bool = Field(default=False)
    is_cancelled: bool = Field(default=False)
    round_count: Optional[int] = Field(default=None)
    status: str = Field(default="waiting")  # "waiting" | "in_progress" | "completed"
    location_name: Optional[str] = None
    starts_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column_kwargs={"onupdate": lambda: datetime.now(timezone.utc)},
    )

    # Relationships
    participants: List["SessionParticipant"] = Relationship(back_populates="session")
    rounds: List["RoundMatch"] = Relationship(back_populates="session")

    @property
    def spots_remaining(self) -> int:
        return self.capacity - self.confirmed_count
