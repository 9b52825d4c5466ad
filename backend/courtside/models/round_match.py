from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtside.models.play_session import PlaySession


class RoundMatch(SQLModel, table=True):
    """
    One court in one round of a session's round robin.

    Created in bulk when the event starts; afterwards only the score columns change.
    bye_players repeats the round's sit-outs on every court row of that round.
    """

    __table_args__ = (
        SAUniqueConstraint("session_id", "round_number", "court_number", name="uq_round_session_round_court"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="playsession.id", index=True)
    round_number: int  # 1-based
    court_number: int  # 1-based, unique within a round
    team1_player1: UUID
    team1_player2: Optional[UUID] = Field(default=None)
    team2_player1: UUID
    team2_player2: Optional[UUID] = Field(default=None)
    bye_players: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    team1_score: Optional[int] = Field(default=None)
    team2_score: Optional[int] = Field(default=None)
    score_entered_by: Optional[UUID] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    session: "PlaySession" = Relationship(back_populates="rounds")

    @property
    def team1(self) -> List[UUID]:
        return [p for p in (self.team1_player1, self.team1_player2) if p is not None]

    @property
    def team2(self) -> List[UUID]:
        return [p for p in (self.team2_player1, self.team2_player2) if p is not None]

    @property
    def byes(self) -> List[UUID]:
        return [UUID(p) for p in self.bye_players or []]

    @property
    def has_score(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None
