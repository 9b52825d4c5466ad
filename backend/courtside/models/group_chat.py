from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


class GroupChat(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: Optional[int] = Field(default=None, foreign_key="playsession.id", index=True)
    name: str
    created_by: UUID
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    members: List["GroupChatMember"] = Relationship(back_populates="group_chat")


class GroupChatMember(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("group_chat_id", "player_id", name="uq_group_chat_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_chat_id: int = Field(foreign_key="groupchat.id", index=True)
    player_id: UUID = Field(index=True)
    role: str = Field(default="member")  # "admin" | "member"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    group_chat: GroupChat = Relationship(back_populates="members")
