"""create_user_info_and_server_info

Revision ID: 3e8d52a1c7b4
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3e8d52a1c7b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user_info",
        sa.Column("steamid64", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("avatar", sa.String(length=512), nullable=True),
        sa.Column("avatarmedium", sa.String(length=512), nullable=True),
        sa.Column("avatarfull", sa.String(length=512), nullable=True),
        sa.Column("profileurl", sa.String(length=512), nullable=True),
        sa.Column("facebook", sa.String(length=512), nullable=True),
        sa.Column("spotify", sa.String(length=512), nullable=True),
        sa.Column("twitter", sa.String(length=512), nullable=True),
        sa.Column("instagram", sa.String(length=512), nullable=True),
        sa.Column("github", sa.String(length=512), nullable=True),
        sa.Column("google_id", sa.String(length=255), nullable=True),
        sa.Column("discord_id", sa.String(length=255), nullable=True),
        sa.Column("github_oauth_id", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), server_default=sa.text("'user'"), nullable=False),
        sa.Column("banned", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("steamid64"),
    )
    op.create_index(op.f("ix_user_info_last_updated"), "user_info", ["last_updated"], unique=False)
    op.create_index(op.f("ix_user_info_google_id"), "user_info", ["google_id"], unique=False)
    op.create_index(op.f("ix_user_info_discord_id"), "user_info", ["discord_id"], unique=False)
    op.create_index(
        op.f("ix_user_info_github_oauth_id"), "user_info", ["github_oauth_id"], unique=False
    )

    op.create_table(
        "server_info",
        sa.Column("server_key", sa.String(length=128), nullable=False),
        sa.Column("server_name", sa.String(length=255), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("port", sa.Integer(), nullable=True),
        sa.Column(
            "registered_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "last_heartbeat",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("server_key"),
    )


def downgrade() -> None:
    op.drop_table("server_info")
    op.drop_index(op.f("ix_user_info_github_oauth_id"), table_name="user_info")
    op.drop_index(op.f("ix_user_info_discord_id"), table_name="user_info")
    op.drop_index(op.f("ix_user_info_google_id"), table_name="user_info")
    op.drop_index(op.f("ix_user_info_last_updated"), table_name="user_info")
    op.drop_table("user_info")
