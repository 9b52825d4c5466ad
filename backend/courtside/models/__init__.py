from courtside.models.friendship import Friendship
from courtside.models.group_chat import GroupChat, GroupChatMember
from courtside.models.play_session import PlaySession
from courtside.models.round_match import RoundMatch
from courtside.models.session_participant import SessionParticipant

__all__ = [
    "PlaySession",
    "SessionParticipant",
    "RoundMatch",
    "Friendship",
    "GroupChat",
    "GroupChatMember",
]
