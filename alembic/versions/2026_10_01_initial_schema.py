"""Create tasks, WhatsApp sessions and outbound message log tables.

Revision ID: initial_20261001
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""
from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from alembic import op
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = "initial_20261001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the core tables."""
    bind = op.get_bind()
    inspector = inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "tasks" not in existing_tables:
        op.create_table(
            "tasks",
            sa.Column("id", sa.UUID(), nullable=False),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False, server_default=""),
            sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column(
                "source",
                sa.Enum("web", "whatsapp", name="tasksource"),
                nullable=False,
                server_default="web",
            ),
            sa.Column("enhanced", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("is_enhancing", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("enhanced_description", sa.Text(), nullable=True),
            sa.Column("enhancement_steps", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            ),
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_tasks_id"), "tasks", ["id"], unique=False)
        op.create_index(op.f("ix_tasks_source"), "tasks", ["source"], unique=False)
        op.create_index(op.f("ix_tasks_created_at"), "tasks", ["created_at"], unique=False)

    if "whatsapp_sessions" not in existing_tables:
        op.create_table(
            "whatsapp_sessions",
            sa.Column("id", sa.UUID(), nullable=False),
            sa.Column("phone_number", sa.String(length=32), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("conversation_id", sa.String(length=255), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_whatsapp_sessions_id"), "whatsapp_sessions", ["id"], unique=False)
        op.create_index(
            op.f("ix_whatsapp_sessions_phone_number"), "whatsapp_sessions", ["phone_number"], unique=False
        )
        op.create_index(
            op.f("ix_whatsapp_sessions_is_active"), "whatsapp_sessions", ["is_active"], unique=False
        )
        op.create_index(
            op.f("ix_whatsapp_sessions_expires_at"), "whatsapp_sessions", ["expires_at"], unique=False
        )

    if "outbound_message_logs" not in existing_tables:
        op.create_table(
            "outbound_message_logs",
            sa.Column("id", sa.UUID(), nullable=False),
            sa.Column("phone_number", sa.String(length=32), nullable=False),
            sa.Column("message", sa.Text(), nullable=False),
            sa.Column("mode", sa.Enum("stub", "live", name="whatsappmode"), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("response", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
            sa.Column(
                "timestamp",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_outbound_message_logs_id"), "outbound_message_logs", ["id"], unique=False)
        op.create_index(
            op.f("ix_outbound_message_logs_phone_number"),
            "outbound_message_logs",
            ["phone_number"],
            unique=False,
        )
        op.create_index(
            op.f("ix_outbound_message_logs_timestamp"),
            "outbound_message_logs",
            ["timestamp"],
            unique=False,
        )


def downgrade() -> None:
    """Drop the core tables."""
    op.drop_table("outbound_message_logs")
    op.drop_table("whatsapp_sessions")
    op.drop_table("tasks")
    sa.Enum(name="whatsappmode").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="tasksource").drop(op.get_bind(), checkfirst=True)
