"""initial_onboarding_schema

Creates the onboarding checklist tables:
  - users             — local and Entra ID accounts with role
  - checklist_items   — Day 1–3 catalog (soft delete via is_active)
  - user_progress     — per (user, item) status, unique pair
  - activity_logs     — append-only usage events

Tables created conditionally (IF NOT EXISTS semantics) so the revision can
run against a development database already built by db.create_all().

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-19 09:12:41.218734
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '7c1e4a9b2d30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Users ─────────────────────────────────────────────────────────────
    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=256), nullable=True),
            sa.Column("entra_id", sa.String(length=255), nullable=True),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
            sa.Column("department", sa.String(length=100), nullable=True),
            sa.Column("join_date", sa.Date(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.CheckConstraint("role IN ('user', 'trainer', 'admin')", name="ck_users_role"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
            sa.UniqueConstraint("entra_id"),
        )
        op.create_index("ix_users_created_at", "users", ["created_at"])

    # ── Checklist items ───────────────────────────────────────────────────
    if "checklist_items" not in existing:
        op.create_table(
            "checklist_items",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("day", sa.Integer(), nullable=False),
            sa.Column("category", sa.String(length=50), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("summary", sa.Text(), nullable=False),
            sa.Column("steps", sa.JSON(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.CheckConstraint("day IN (1, 2, 3)", name="ck_checklist_items_day"),
            sa.CheckConstraint("order_index >= 0", name="ck_checklist_items_order_index"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_checklist_items_day_order", "checklist_items", ["day", "order_index"])

    # ── User progress ─────────────────────────────────────────────────────
    if "user_progress" not in existing:
        op.create_table(
            "user_progress",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("checklist_item_id", sa.String(length=36), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.CheckConstraint(
                "status IN ('pending', 'resolved', 'unresolved')", name="ck_user_progress_status"
            ),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["checklist_item_id"], ["checklist_items.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("user_id", "checklist_item_id", name="uq_user_progress_user_item"),
        )
        op.create_index("ix_user_progress_user_id", "user_progress", ["user_id"])
        op.create_index("ix_user_progress_status", "user_progress", ["status"])

    # ── Activity logs ─────────────────────────────────────────────────────
    if "activity_logs" not in existing:
        op.create_table(
            "activity_logs",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("checklist_item_id", sa.String(length=36), nullable=True),
            sa.Column("action", sa.String(length=30), nullable=False),
            sa.Column("metadata", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.CheckConstraint(
                "action IN ('view', 'resolve', 'unresolve', 'contact_click', 'share_link')",
                name="ck_activity_logs_action",
            ),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["checklist_item_id"], ["checklist_items.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])
        op.create_index(
            "ix_activity_logs_action_item", "activity_logs", ["action", "checklist_item_id"]
        )


def downgrade():
    op.drop_table("activity_logs")
    op.drop_table("user_progress")
    op.drop_table("checklist_items")
    op.drop_table("users")
