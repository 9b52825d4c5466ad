# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from courtside.models.friendship import Friendship  # noqa: F401
from courtside.models.group_chat import GroupChat, GroupChatMember  # noqa: F401
from courtside.models.play_session import PlaySession  # noqa: F401
from courtside.models.round_match import RoundMatch  # noqa: F401
from courtside.models.session_participant import SessionParticipant  # noqa: F401
