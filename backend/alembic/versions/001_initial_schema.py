"""Initial schema: sessions, participants, round robin rounds, friendships, group chats

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create play session table
    op.create_table(
        "playsession",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("confirmed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("format", sa.String(), nullable=False, server_default="doubles"),
        sa.Column("friends_only", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("is_cancelled", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("round_count", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="waiting"),
        sa.Column("location_name", sa.String(), nullable=True),
        sa.Column("starts_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("confirmed_count >= 0 AND confirmed_count <= capacity", name="ck_playsession_capacity"),
    )
    op.create_index("ix_playsession_owner_id", "playsession", ["owner_id"])

    # Create participant table
    op.create_table(
        "sessionparticipant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Uuid(), nullable=False),
        sa.Column("invited_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["playsession.id"]),
        sa.UniqueConstraint("session_id", "player_id", name="uq_participant_session_player"),
    )
    op.create_index("ix_sessionparticipant_session_id", "sessionparticipant", ["session_id"])
    op.create_index("ix_sessionparticipant_player_id", "sessionparticipant", ["player_id"])

    # Create round robin round table
    op.create_table(
        "roundmatch",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("court_number", sa.Integer(), nullable=False),
        sa.Column("team1_player1", sa.Uuid(), nullable=False),
        sa.Column("team1_player2", sa.Uuid(), nullable=True),
        sa.Column("team2_player1", sa.Uuid(), nullable=False),
        sa.Column("team2_player2", sa.Uuid(), nullable=True),
        sa.Column("bye_players", sa.JSON(), nullable=False),
        sa.Column("team1_score", sa.Integer(), nullable=True),
        sa.Column("team2_score", sa.Integer(), nullable=True),
        sa.Column("score_entered_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["playsession.id"]),
        sa.UniqueConstraint("session_id", "round_number", "court_number", name="uq_round_session_round_court"),
    )
    op.create_index("ix_roundmatch_session_id", "roundmatch", ["session_id"])

    # Create friendship table (read-only here)
    op.create_table(
        "friendship",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("friend_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "friend_id", name="uq_friendship_pair"),
    )
    op.create_index("ix_friendship_user_id", "friendship", ["user_id"])
    op.create_index("ix_friendship_friend_id", "friendship", ["friend_id"])

    # Create group chat tables
    op.create_table(
        "groupchat",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["playsession.id"]),
    )
    op.create_index("ix_groupchat_session_id", "groupchat", ["session_id"])

    op.create_table(
        "groupchatmember",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_chat_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="member"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_chat_id"], ["groupchat.id"]),
        sa.UniqueConstraint("group_chat_id", "player_id", name="uq_group_chat_member"),
    )
    op.create_index("ix_groupchatmember_group_chat_id", "groupchatmember", ["group_chat_id"])
    op.create_index("ix_groupchatmember_player_id", "groupchatmember", ["player_id"])


def downgrade() -> None:
    op.drop_table("groupchatmember")
    op.drop_table("groupchat")
    op.drop_table("friendship")
    op.drop_table("roundmatch")
    op.drop_table("sessionparticipant")
    op.drop_table("playsession")
