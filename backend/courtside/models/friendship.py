"""
Friendship edges owned by the social side of the app.

This service only reads them: the friends-only gate asks whether an accepted
edge exists in either direction.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Friendship(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("user_id", "friend_id", name="uq_friendship_pair"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(index=True)
    friend_id: UUID = Field(index=True)
    status: str = Field(default="pending")  # "pending" | "accepted"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
