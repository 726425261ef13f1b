"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the profiles table (read-only for this service) and the
access_requests table with its lookup indexes.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- profiles ---
    op.create_table(
        "profiles",
        sa.Column("profile_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type_of_work", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(20), nullable=True),
        sa.Column("date_of_birth", sa.String(20), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("position", sa.String(100), nullable=True),
        sa.Column("profile_picture", sa.String(500), nullable=True),
        sa.Column("social_links", sa.JSON, nullable=True),
        sa.Column("custom_links", sa.JSON, nullable=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("privacy", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- access_requests ---
    op.create_table(
        "access_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("profile_id", sa.String(36), sa.ForeignKey("profiles.profile_id"), nullable=False),
        sa.Column("requester_name", sa.String(100), nullable=True),
        sa.Column("requester_email", sa.String(255), nullable=True),
        sa.Column("requester_mobile", sa.String(20), nullable=True),
        sa.Column("access_token", sa.String(64), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "denied", "expired", name="accessrequeststatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_access_requests_access_token", "access_requests", ["access_token"], unique=True)
    op.create_index("ix_access_requests_profile_id", "access_requests", ["profile_id"])
    op.create_index("ix_access_requests_requester_email", "access_requests", ["requester_email"])
    op.create_index("ix_access_requests_requester_mobile", "access_requests", ["requester_mobile"])
    op.create_index("ix_access_requests_status", "access_requests", ["status"])
    op.create_index("ix_access_requests_expires_at", "access_requests", ["expires_at"])


def downgrade() -> None:
    op.drop_table("access_requests")
    sa.Enum(name="accessrequeststatus").drop(op.get_bind(), checkfirst=True)
    op.drop_table("profiles")
