import os
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./courtside.db")

_is_sqlite = DATABASE_URL.startswith("sqlite")
_echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")
# Writers contending on the session row wait this long instead of failing with "database is locked"
_busy_timeout = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))
_connect_args = {"check_same_thread": False, "timeout": _busy_timeout} if _is_sqlite else {}

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=_echo,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db(bind: Engine = None) -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from courtside.models.friendship import Friendship  # noqa: F401
    from courtside.models.group_chat import GroupChat, GroupChatMember  # noqa: F401
    from courtside.models.play_session import PlaySession  # noqa: F401
    from courtside.models.round_match import RoundMatch  # noqa: F401
    from courtside.models.session_participant import SessionParticipant  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
