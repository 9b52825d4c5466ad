"""
Shared value types for round-robin scheduling and standings.

Players are plain UUIDs. Nothing in here touches the database; the persisted
equivalents live in courtside.models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from uuid import UUID


class GameFormat(str, Enum):
    SINGLES = "singles"
    DOUBLES = "doubles"
    MIXED_DOUBLES = "mixed_doubles"
    DRILL = "drill"

    @property
    def is_doubles(self) -> bool:
        # Everything except singles is scheduled as rotating quartets
        return self is not GameFormat.SINGLES


class SessionStatus(str, Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MatchSlot:
    court: int
    team1: List[UUID]
    team2: List[UUID]


@dataclass(frozen=True)
class RoundSchedule:
    round_number: int  # 1-based
    matches: List[MatchSlot]
    byes: List[UUID]


@dataclass
class ScoredMatch:
    """Minimal match shape accepted by the standings aggregator."""

    team1: List[UUID]
    team2: List[UUID]
    team1_score: Optional[int] = None
    team2_score: Optional[int] = None

    @property
    def has_score(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None


@dataclass
class LeaderboardEntry:
    player_id: UUID
    wins: int = 0
    losses: int = 0
    total_points: int = 0
    point_differential: int = 0
    games_played: int = 0

    @property
    def avg_point_differential(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.point_differential / self.games_played

    def to_dict(self) -> dict:
        return {
            "player_id": str(self.player_id),
            "wins": self.wins,
            "losses": self.losses,
            "total_points": self.total_points,
            "point_differential": self.point_differential,
            "games_played": self.games_played,
            "avg_point_differential": self.avg_point_differential,
        }
