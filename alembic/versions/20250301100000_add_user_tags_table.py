"""Add user_tags table (per-user labels, unique name per user).

Revision ID: 20250301100000
Revises: 20250301000000
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20250301100000"
down_revision: Union[str, None] = "20250301000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=30), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#8B5CF6"),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "name", name="uq_user_tags_user_id_name"),
    )
    op.create_index(op.f("ix_user_tags_user_id"), "user_tags", ["user_id"], unique=False)
    op.create_index(
        "ix_user_tags_user_id_usage_count",
        "user_tags",
        ["user_id", "usage_count"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_user_tags_user_id_usage_count", table_name="user_tags")
    op.drop_index(op.f("ix_user_tags_user_id"), table_name="user_tags")
    op.drop_table("user_tags")
