"""WorkflowRule service layer.

This module provides CRUD over persisted workflow rules, plus the graph
write used as the persistence collaborator of a builder session. Records
are scoped to a tenant; writes are last-write-wins.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from workflow_builder.core.logging import get_logger
from workflow_builder.models.workflow_rule import WorkflowRule

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from workflow_builder.schemas.workflow_rule import RuleGraphPayload

logger = get_logger(__name__)

# =============================================================================
# Exceptions
# =============================================================================


class WorkflowRuleServiceError(Exception):
    """Base exception for workflow rule service errors."""


class WorkflowRuleNotFoundError(WorkflowRuleServiceError):
    """Raised when a workflow rule is not found."""


# =============================================================================
# WorkflowRuleService
# =============================================================================


class WorkflowRuleService:
    """Service for workflow rule CRUD operations."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize workflow rule service."""
        self.db = db

    async def create(self, tenant_id: UUID, data: Any) -> WorkflowRule:
        """Create a new rule with an empty graph."""
        try:
            rule = WorkflowRule(
                tenant_id=tenant_id,
                name=data.name,
                description=data.description,
                trigger_type=data.trigger_type,
                conditions={},
                actions=[],
                active=data.active,
                sort_order=data.sort_order,
            )
            self.db.add(rule)
            await self.db.flush()
            await self.db.refresh(rule)
        except Exception as e:
            raise WorkflowRuleServiceError(f"Failed to create workflow rule: {e}") from e
        logger.info(
            "Workflow rule created",
            extra={"context": {"rule_id": str(rule.id), "tenant_id": str(tenant_id)}},
        )
        return rule

    async def get(self, rule_id: UUID, tenant_id: UUID | None = None) -> WorkflowRule | None:
        """Get a rule by ID, optionally restricted to a tenant."""
        query = select(WorkflowRule).where(WorkflowRule.id == rule_id)
        if tenant_id is not None:
            query = query.where(WorkflowRule.tenant_id == tenant_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_raise(self, rule_id: UUID, tenant_id: UUID | None = None) -> WorkflowRule:
        rule = await self.get(rule_id, tenant_id)
        if rule is None:
            raise WorkflowRuleNotFoundError(f"Workflow rule {rule_id} not found")
        return rule

    async def list(
        self,
        tenant_id: UUID,
        active: bool | None = None,
    ) -> list[WorkflowRule]:
        """List a tenant's rules in list order."""
        query = select(WorkflowRule).where(WorkflowRule.tenant_id == tenant_id)

        if active is not None:
            query = query.where(WorkflowRule.active == active)

        query = query.order_by(WorkflowRule.sort_order, WorkflowRule.created_at)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update(self, rule_id: UUID, data: Any, tenant_id: UUID | None = None) -> WorkflowRule:
        """Update rule metadata; unset fields are left alone."""
        rule = await self.get_or_raise(rule_id, tenant_id)

        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if hasattr(rule, field):
                setattr(rule, field, value)

        rule.updated_at = datetime.now(UTC)

        await self.db.flush()
        await self.db.refresh(rule)
        return rule

    async def delete(self, rule_id: UUID, tenant_id: UUID | None = None) -> None:
        """Delete a rule."""
        rule = await self.get_or_raise(rule_id, tenant_id)
        await self.db.delete(rule)
        await self.db.flush()
        logger.info("Workflow rule deleted", extra={"context": {"rule_id": str(rule_id)}})

    async def update_graph(
        self,
        rule_id: UUID,
        payload: RuleGraphPayload,
        tenant_id: UUID | None = None,
    ) -> WorkflowRule:
        """Write a builder session's save payload to the record.

        ``name``, ``trigger_type``, ``conditions`` and ``actions`` are
        replaced wholesale.
        """
        rule = await self.get_or_raise(rule_id, tenant_id)

        rule.name = payload.name
        rule.trigger_type = payload.trigger_type
        rule.conditions = dict(payload.conditions)
        rule.actions = [action.to_document() for action in payload.actions]
        rule.updated_at = datetime.now(UTC)

        await self.db.flush()
        await self.db.refresh(rule)
        logger.debug(
            "Workflow rule graph written",
            extra={
                "context": {
                    "rule_id": str(rule_id),
                    "trigger_type": payload.trigger_type,
                    "actions": len(payload.actions),
                }
            },
        )
        return rule


__all__ = [
    "WorkflowRuleNotFoundError",
    "WorkflowRuleService",
    "WorkflowRuleServiceError",
]
