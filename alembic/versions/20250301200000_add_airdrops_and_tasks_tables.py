"""Add airdrops and tasks tables.

Revision ID: 20250301200000
Revises: 20250301100000
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20250301200000"
down_revision: Union[str, None] = "20250301100000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "airdrops",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="upcoming"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("token_symbol", sa.String(length=10), nullable=True),
        sa.Column("total_reward", sa.String(length=100), nullable=True),
        sa.Column("requirements", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("twitter", sa.Text(), nullable=True),
        sa.Column("discord", sa.Text(), nullable=True),
        sa.Column("telegram", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint("priority >= 1 AND priority <= 5", name=op.f("ck_airdrops_priority_range")),
        sa.CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR end_date > start_date",
            name=op.f("ck_airdrops_dates_ordered"),
        ),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_airdrops_created_by"), "airdrops", ["created_by"], unique=False)
    op.create_index(op.f("ix_airdrops_end_date"), "airdrops", ["end_date"], unique=False)
    op.create_index(op.f("ix_airdrops_token_symbol"), "airdrops", ["token_symbol"], unique=False)
    op.create_index(
        "ix_airdrops_status_created_at", "airdrops", ["status", "created_at"], unique=False
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("airdrop_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("project", sa.String(length=100), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_daily", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("priority", sa.String(length=8), nullable=False, server_default="Medium"),
        sa.Column("category", sa.String(length=16), nullable=False, server_default="Mainnet"),
        sa.Column("difficulty", sa.String(length=8), nullable=False, server_default="Easy"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("estimated_time", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("reward", sa.String(length=100), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["airdrop_id"], ["airdrops.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tasks_user_id"), "tasks", ["user_id"], unique=False)
    op.create_index(op.f("ix_tasks_airdrop_id"), "tasks", ["airdrop_id"], unique=False)
    op.create_index("ix_tasks_user_id_completed", "tasks", ["user_id", "completed"], unique=False)
    op.create_index("ix_tasks_user_id_is_daily", "tasks", ["user_id", "is_daily"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tasks_user_id_is_daily", table_name="tasks")
    op.drop_index("ix_tasks_user_id_completed", table_name="tasks")
    op.drop_index(op.f("ix_tasks_airdrop_id"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_user_id"), table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_airdrops_status_created_at", table_name="airdrops")
    op.drop_index(op.f("ix_airdrops_token_symbol"), table_name="airdrops")
    op.drop_index(op.f("ix_airdrops_end_date"), table_name="airdrops")
    op.drop_index(op.f("ix_airdrops_created_by"), table_name="airdrops")
    op.drop_table("airdrops")
