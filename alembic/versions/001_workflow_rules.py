"""Workflow rules table

Creates tables for:
- workflow_rules: returns workflow rules; graph-authored rules keep their
  graph document in ``conditions``

Revision ID: 001_workflow_rules
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_workflow_rules"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the workflow_rules table."""
    op.create_table(
        "workflow_rules",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "trigger_type",
            sa.String(64),
            nullable=False,
            server_default="manual",
        ),
        sa.Column(
            "conditions",
            postgresql.JSONB,
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "actions",
            postgresql.JSONB,
            nullable=False,
            server_default="[]",
        ),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_index("ix_workflow_rules_tenant_id", "workflow_rules", ["tenant_id"])
    op.create_index(
        "idx_workflow_rules_tenant_order",
        "workflow_rules",
        ["tenant_id", "sort_order"],
    )


def downgrade() -> None:
    """Drop the workflow_rules table."""
    op.drop_index("idx_workflow_rules_tenant_order", table_name="workflow_rules")
    op.drop_index("ix_workflow_rules_tenant_id", table_name="workflow_rules")
    op.drop_table("workflow_rules")
