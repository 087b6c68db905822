"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the study group backend:
users, allowed_emails, groups, memberships, membership_requests,
notices, activity_logs.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

group_purpose = sa.Enum("LEARNING", "PROJECT", "DISCUSSION", "NETWORKING", "OTHER", name="grouppurpose")
membership_status = sa.Enum("ACTIVE", "REMOVED", "LEFT", name="membershipstatus")
request_status = sa.Enum("PENDING", "APPROVED", "REJECTED", "EXPIRED", name="requeststatus")
notice_type = sa.Enum("GENERAL", "ANNOUNCEMENT", "SCHEDULE", "RESOURCE", name="noticetype")
activity_kind = sa.Enum(
    "USER_REGISTERED", "GROUP_CREATED", "GROUP_UPDATED", "GROUP_DISBANDED",
    "JOIN_REQUEST_SENT", "JOIN_REQUEST_APPROVED", "JOIN_REQUEST_REJECTED", "REQUEST_DECIDED",
    "MEMBER_LEFT", "MEMBER_REMOVED",
    "NOTICE_CREATED", "NOTICE_UPDATED", "NOTICE_PINNED", "NOTICE_DELETED",
    name="activitykind",
)


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(50), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("github_url", sa.String(255), nullable=True),
        sa.Column("blog_url", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # --- allowed_emails ---
    op.create_table(
        "allowed_emails",
        sa.Column("email", sa.String(255), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- groups ---
    op.create_table(
        "groups",
        sa.Column("group_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("purpose", group_purpose, nullable=False),
        sa.Column("max_members", sa.Integer, nullable=False),
        sa.Column("leader_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("max_members BETWEEN 2 AND 10", name="ck_groups_max_members"),
    )
    op.create_index(
        "uq_groups_active_name", "groups", ["name"], unique=True,
        postgresql_where=sa.text("is_active"), sqlite_where=sa.text("is_active = 1"),
    )

    # --- memberships ---
    op.create_table(
        "memberships",
        sa.Column("membership_id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.group_id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("status", membership_status, nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_memberships_group_id", "memberships", ["group_id"])
    op.create_index(
        "uq_memberships_active_user", "memberships", ["user_id"], unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"), sqlite_where=sa.text("status = 'ACTIVE'"),
    )

    # --- membership_requests ---
    op.create_table(
        "membership_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.group_id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("response_message", sa.String(500), nullable=True),
        sa.Column("status", request_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_membership_requests_group_id", "membership_requests", ["group_id"])
    op.create_index("ix_membership_requests_user_id", "membership_requests", ["user_id"])
    op.create_index(
        "uq_membership_requests_pending", "membership_requests", ["group_id", "user_id"], unique=True,
        postgresql_where=sa.text("status = 'PENDING'"), sqlite_where=sa.text("status = 'PENDING'"),
    )

    # --- notices ---
    op.create_table(
        "notices",
        sa.Column("notice_id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.group_id"), nullable=False),
        sa.Column("author_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("notice_type", notice_type, nullable=False),
        sa.Column("is_pinned", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notices_group_id", "notices", ["group_id"])

    # --- activity_logs ---
    op.create_table(
        "activity_logs",
        sa.Column("activity_id", sa.String(36), primary_key=True),
        sa.Column("actor_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.group_id"), nullable=True),
        sa.Column("kind", activity_kind, nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_activity_logs_actor_id", "activity_logs", ["actor_id"])
    op.create_index("ix_activity_logs_group_id", "activity_logs", ["group_id"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("notices")
    op.drop_table("membership_requests")
    op.drop_table("memberships")
    op.drop_table("groups")
    op.drop_table("allowed_emails")
    op.drop_table("users")
    for enum_type in (activity_kind, notice_type, request_status, membership_status, group_purpose):
        enum_type.drop(op.get_bind(), checkfirst=True)
