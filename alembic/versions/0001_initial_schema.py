"""Form mapping cache and application attempts

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "ats_form_mappings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ats_platform", sa.String(length=40), nullable=False),
        sa.Column("form_hash", sa.String(length=64), nullable=False),
        sa.Column("fields_json", sa.JSON(), nullable=False),
        sa.Column("form_url", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("company_domain", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("screenshot_path", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("success_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("ats_platform", "form_hash", name="uq_ats_form_mapping"),
    )
    op.create_index("ix_ats_form_mappings_ats_platform", "ats_form_mappings", ["ats_platform"])

    op.create_table(
        "application_attempts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.Integer(), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=False),
        sa.Column("profile_snapshot_json", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="pending"),
        sa.Column("platform", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("fields_filled_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("filled_field_names_json", sa.JSON(), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_retry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_retry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("low_confidence", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("screenshot_path", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_application_attempts_user_id", "application_attempts", ["user_id"])
    op.create_index("ix_application_attempts_job_id", "application_attempts", ["job_id"])
    op.create_index("ix_application_attempts_status", "application_attempts", ["status"])
    op.create_index("ix_application_attempts_next_retry_at", "application_attempts", ["next_retry_at"])


def downgrade() -> None:
    op.drop_index("ix_application_attempts_next_retry_at", table_name="application_attempts")
    op.drop_index("ix_application_attempts_status", table_name="application_attempts")
    op.drop_index("ix_application_attempts_job_id", table_name="application_attempts")
    op.drop_index("ix_application_attempts_user_id", table_name="application_attempts")
    op.drop_table("application_attempts")
    op.drop_index("ix_ats_form_mappings_ats_platform", table_name="ats_form_mappings")
    op.drop_table("ats_form_mappings")
