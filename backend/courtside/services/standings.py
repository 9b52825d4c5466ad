"""
Round robin standings.

Folds scored matches into a ranked leaderboard. Holds no state: callers pass
every stored match of a session on each request, so the leaderboard can never
drift from the match rows.
"""

from typing import Dict, Iterable, List, Optional, Protocol, Sequence
from uuid import UUID

from courtside.utils.roster_types import LeaderboardEntry


class MatchLike(Protocol):
    team1: Sequence[UUID]
    team2: Sequence[UUID]
    team1_score: Optional[int]
    team2_score: Optional[int]


def _credit(entry: LeaderboardEntry, won: bool, own_score: int, opponent_score: int) -> None:
    if won:
        entry.wins += 1
    else:
        entry.losses += 1
    entry.total_points += own_score
    entry.point_differential += own_score - opponent_score
    entry.games_played += 1


def ranking_key(entry: LeaderboardEntry):
    """wins desc, point differential desc, player id asc."""
    return (-entry.wins, -entry.point_differential, str(entry.player_id))


def compute_leaderboard(matches: Iterable[MatchLike]) -> List[LeaderboardEntry]:
    """
    Build the leaderboard from a set of matches.

    - Unscored matches are skipped, so an in-progress event has a partial board
    - A tied score awards nothing and is skipped as well
    - Byes contribute nothing; games_played counts matches, not rounds
    - Players with no scored match do not appear
    """
    entries: Dict[UUID, LeaderboardEntry] = {}

    for match in matches:
        s1, s2 = match.team1_score, match.team2_score
        # Ties are skipped rather than credited to team2; submit_score already rejects them
        if s1 is None or s2 is None or s1 == s2:
            continue
        team1_won = s1 > s2

        for player_id in match.team1:
            entry = entries.setdefault(player_id, LeaderboardEntry(player_id=player_id))
            _credit(entry, team1_won, s1, s2)
        for player_id in match.team2:
            entry = entries.setdefault(player_id, LeaderboardEntry(player_id=player_id))
            _credit(entry, not team1_won, s2, s1)

    return sorted(entries.values(), key=ranking_key)
