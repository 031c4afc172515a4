"""WorkflowRule model: the persisted record behind a returns workflow.

The table predates the visual graph editor. Its ``trigger_type``,
``conditions`` and ``actions`` columns are the legacy single-trigger rule
shape; graph-authored rules keep their whole graph document in
``conditions`` (tagged with ``_graphVersion``) and a flat action summary in
``actions`` so that list views keep working.
"""

import uuid
from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from workflow_builder.models.base import GUID, Base, TimestampMixin, UUIDMixin

# Use JSONB for PostgreSQL, JSON for other databases (like SQLite for testing)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class WorkflowRule(UUIDMixin, TimestampMixin, Base):
    """Returns-processing workflow rule.

    Attributes:
        id: UUID primary key (from UUIDMixin)
        tenant_id: Owning tenant
        name: Display name
        description: Optional free text
        trigger_type: Legacy trigger field, kept in sync with the graph's trigger node
        conditions: Graph document for graph rules, legacy condition blob otherwise
        actions: Summary list of ``{"type", "params"}`` entries
        active: Whether the rule is enabled
        sort_order: Position in the rule list
    """

    __tablename__ = "workflow_rules"

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    trigger_type: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="manual",
        server_default="manual",
    )

    conditions: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        server_default="{}",
    )

    actions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        server_default="[]",
    )

    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )

    sort_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    def __repr__(self) -> str:
        """Return string representation of the rule."""
        return f"<WorkflowRule(id={self.id}, name='{self.name}', trigger='{self.trigger_type}')>"


__all__ = ["JSONType", "WorkflowRule"]
