"""
Round Robin Schedule Generation

Turns a roster of players into an ordered list of rounds:
1. Singles: circle method (fix position 0, rotate the rest). Odd rosters get
   an internal bye slot, so each real player sits out once per cycle.
2. Doubles (and every other non-singles format): rotating quartets. Players
   beyond a multiple of 4 sit out, with the bye window sliding through the
   roster so sit-outs are spread evenly. Partner pattern cycles every 3 rounds.

The roster is shuffled exactly once per call. Pass a seeded random.Random to
get a reproducible schedule; the default is an unseeded generator.
"""

import random
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union
from uuid import UUID

from courtside.services.errors import ValidationError
from courtside.utils.roster_types import GameFormat, MatchSlot, RoundSchedule

MIN_PLAYERS = 2

# Quartet positions (team1, team2) for pattern = round_index % 3
PARTNER_PATTERNS: Tuple[Tuple[Tuple[int, int], Tuple[int, int]], ...] = (
    ((0, 1), (2, 3)),
    ((0, 2), (1, 3)),
    ((0, 3), (1, 2)),
)


class _Bye(Enum):
    """Phantom opponent used to even out an odd singles roster. Never returned."""

    SLOT = "bye"


_Slot = Union[UUID, _Bye]


def _validate(players: Sequence[UUID], num_rounds: int) -> None:
    if len(players) < MIN_PLAYERS:
        raise ValidationError(f"Need at least {MIN_PLAYERS} players to generate a schedule")
    if len(set(players)) != len(players):
        raise ValidationError("Roster contains duplicate players")
    if num_rounds < 1:
        raise ValidationError("num_rounds must be >= 1")


def _shuffled(players: Sequence[UUID], rng: Optional[random.Random]) -> List[UUID]:
    rng = rng or random.Random()
    roster = list(players)
    rng.shuffle(roster)
    return roster


def circle_rotation(slots: List[_Slot], round_index: int) -> List[_Slot]:
    """Keep slots[0] fixed and rotate the remaining slots by round_index mod (n-1)."""
    n = len(slots)
    rotation = round_index % (n - 1)
    rotated = [slots[0]]
    for i in range(1, n):
        rotated.append(slots[((i - 1 + rotation) % (n - 1)) + 1])
    return rotated


def generate_singles_schedule(
    players: Sequence[UUID], num_rounds: int, rng: Optional[random.Random] = None
) -> List[RoundSchedule]:
    """
    Circle-method singles schedule.

    Over n-1 rounds (n = roster size rounded up to even) every pair of players
    meets exactly once. More rounds than that repeat the cycle.
    """
    _validate(players, num_rounds)
    slots: List[_Slot] = list(_shuffled(players, rng))
    if len(slots) % 2 == 1:
        slots.append(_Bye.SLOT)
    n = len(slots)

    rounds: List[RoundSchedule] = []
    for r in range(num_rounds):
        rotated = circle_rotation(slots, r)
        matches: List[MatchSlot] = []
        byes: List[UUID] = []
        court = 1
        for i in range(n // 2):
            p1 = rotated[i]
            p2 = rotated[n - 1 - i]
            if p1 is _Bye.SLOT or p2 is _Bye.SLOT:
                byes.append(p2 if p1 is _Bye.SLOT else p1)
                continue
            matches.append(MatchSlot(court=court, team1=[p1], team2=[p2]))
            court += 1
        rounds.append(RoundSchedule(round_number=r + 1, matches=matches, byes=byes))
    return rounds


def bye_indices(n: int, num_byes: int, round_index: int) -> List[int]:
    """Roster positions sitting out round_index: a window of num_byes sliding by num_byes per round."""
    if num_byes == 0:
        return []
    start = (round_index * num_byes) % n
    return [(start + j) % n for j in range(num_byes)]


def generate_doubles_schedule(
    players: Sequence[UUID], num_rounds: int, rng: Optional[random.Random] = None
) -> List[RoundSchedule]:
    """
    Rotating-quartet doubles schedule.

    floor(n/4)*4 players are on court each round; the rest take a bye. Active
    players are rotated by round_index mod active_count, cut into quartets,
    and each quartet is split into teams by PARTNER_PATTERNS[round_index % 3].
    """
    _validate(players, num_rounds)
    roster = _shuffled(players, rng)
    n = len(roster)
    on_court = (n // 4) * 4
    num_byes = n - on_court

    rounds: List[RoundSchedule] = []
    for r in range(num_rounds):
        sitting_out = set(bye_indices(n, num_byes, r))
        byes = [roster[i] for i in sorted(sitting_out)]
        active = [p for i, p in enumerate(roster) if i not in sitting_out]

        if active:
            shift = r % len(active)
            active = active[shift:] + active[:shift]

        (a1, a2), (b1, b2) = PARTNER_PATTERNS[r % 3]
        matches: List[MatchSlot] = []
        for q in range(len(active) // 4):
            quartet = active[q * 4 : q * 4 + 4]
            matches.append(
                MatchSlot(
                    court=q + 1,
                    team1=[quartet[a1], quartet[a2]],
                    team2=[quartet[b1], quartet[b2]],
                )
            )
        rounds.append(RoundSchedule(round_number=r + 1, matches=matches, byes=byes))
    return rounds


def generate_schedule(
    players: Sequence[UUID],
    num_rounds: int,
    game_format: GameFormat,
    rng: Optional[random.Random] = None,
) -> List[RoundSchedule]:
    """Dispatch to the singles or doubles generator based on the session format."""
    if GameFormat(game_format).is_doubles:
        return generate_doubles_schedule(players, num_rounds, rng=rng)
    return generate_singles_schedule(players, num_rounds, rng=rng)
