"""Workflow Rule API Router.

This module provides REST API endpoints for workflow rules: metadata
CRUD, loading and saving a rule's graph, and downloading it as an
export file. Graph saves go through a ``BuilderSession`` so that the
same validation gate applies as in the editor.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Response, status

from workflow_builder.api.deps import (  # noqa: TC001 - Required at runtime for FastAPI
    DBSession,
    TenantId,
)
from workflow_builder.core.logging import get_logger
from workflow_builder.schemas.workflow_rule import (
    RuleGraphPayload,
    WorkflowGraphResponse,
    WorkflowGraphSave,
    WorkflowRuleCreate,
    WorkflowRuleResponse,
    WorkflowRuleUpdate,
)
from workflow_builder.services.workflow.exceptions import (
    GraphImportError,
    SaveInProgressError,
    WorkflowSaveError,
    WorkflowValidationFailedError,
)
from workflow_builder.services.workflow.serialization import content_disposition
from workflow_builder.services.workflow.session import BuilderSession
from workflow_builder.services.workflow_rule_service import (
    WorkflowRuleNotFoundError,
    WorkflowRuleService,
    WorkflowRuleServiceError,
)

router = APIRouter()

logger = get_logger(__name__)


async def _open_session(
    service: WorkflowRuleService,
    rule_id: UUID,
    tenant_id: UUID,
) -> BuilderSession:
    """Load a rule into a builder session, mapping failures to HTTP errors."""
    try:
        rule = await service.get_or_raise(rule_id, tenant_id)
        return BuilderSession.from_rule(rule)
    except WorkflowRuleNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    except GraphImportError as e:
        logger.error(
            "Stored workflow graph is corrupt",
            extra={"context": {"rule_id": str(rule_id), "reason": e.reason}},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.to_dict(),
        ) from e


# =============================================================================
# Workflow Rule Endpoints
# =============================================================================


@router.get(
    "/",
    response_model=list[WorkflowRuleResponse],
    summary="List workflow rules",
    description="Retrieve the current tenant's rules in list order.",
)
async def list_workflow_rules(
    db: DBSession,
    tenant_id: TenantId,
    active: Annotated[
        bool | None,
        Query(description="Filter by enabled status"),
    ] = None,
) -> list[WorkflowRuleResponse]:
    """List workflow rules.

    Args:
        db: Database session.
        tenant_id: Current tenant.
        active: Optional filter by enabled status.

    Returns:
        Rules ordered by ``sort_order``.
    """
    service = WorkflowRuleService(db)
    rules = await service.list(tenant_id=tenant_id, active=active)
    return [WorkflowRuleResponse.model_validate(rule) for rule in rules]


@router.post(
    "/",
    response_model=WorkflowRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create workflow rule",
    description="Create a new rule with an empty graph.",
)
async def create_workflow_rule(
    db: DBSession,
    tenant_id: TenantId,
    rule_in: WorkflowRuleCreate,
) -> WorkflowRuleResponse:
    """Create a new workflow rule.

    Raises:
        HTTPException: 400 if the record cannot be created.
    """
    try:
        service = WorkflowRuleService(db)
        rule = await service.create(tenant_id=tenant_id, data=rule_in)
        return WorkflowRuleResponse.model_validate(rule)
    except WorkflowRuleServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e


@router.get(
    "/{rule_id}",
    response_model=WorkflowRuleResponse,
    summary="Get workflow rule",
)
async def get_workflow_rule(
    db: DBSession,
    tenant_id: TenantId,
    rule_id: UUID,
) -> WorkflowRuleResponse:
    """Get a workflow rule by ID.

    Raises:
        HTTPException: 404 if the rule does not exist.
    """
    service = WorkflowRuleService(db)
    rule = await service.get(rule_id, tenant_id)
    if rule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Workflow rule {rule_id} not found",
        )
    return WorkflowRuleResponse.model_validate(rule)


@router.patch(
    "/{rule_id}",
    response_model=WorkflowRuleResponse,
    summary="Update workflow rule",
    description="Update rule metadata. The graph is written through PUT /graph.",
)
async def update_workflow_rule(
    db: DBSession,
    tenant_id: TenantId,
    rule_id: UUID,
    rule_in: WorkflowRuleUpdate,
) -> WorkflowRuleResponse:
    """Update workflow rule metadata.

    Raises:
        HTTPException: 404 if the rule does not exist.
    """
    try:
        service = WorkflowRuleService(db)
        rule = await service.update(rule_id, rule_in, tenant_id)
        return WorkflowRuleResponse.model_validate(rule)
    except WorkflowRuleNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete workflow rule",
)
async def delete_workflow_rule(
    db: DBSession,
    tenant_id: TenantId,
    rule_id: UUID,
) -> None:
    """Delete a workflow rule.

    Raises:
        HTTPException: 404 if the rule does not exist.
    """
    try:
        service = WorkflowRuleService(db)
        await service.delete(rule_id, tenant_id)
    except WorkflowRuleNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


# =============================================================================
# Graph Endpoints
# =============================================================================


@router.get(
    "/{rule_id}/graph",
    response_model=WorkflowGraphResponse,
    summary="Get workflow rule graph",
    description="Load a rule's graph, upgrading legacy records, with its validation errors.",
)
async def get_workflow_rule_graph(
    db: DBSession,
    tenant_id: TenantId,
    rule_id: UUID,
) -> WorkflowGraphResponse:
    """Get the graph of a workflow rule.

    Raises:
        HTTPException: 404 if the rule does not exist, 500 if its stored
            graph is corrupt.
    """
    session = await _open_session(WorkflowRuleService(db), rule_id, tenant_id)
    return WorkflowGraphResponse(
        rule_id=rule_id,
        name=session.name,
        graph=session.graph,
        errors=session.errors,
        legacy=session.legacy,
    )


@router.put(
    "/{rule_id}/graph",
    response_model=WorkflowGraphResponse,
    summary="Save workflow rule graph",
    description="Validate and persist a graph. Invalid graphs are rejected with 422.",
)
async def save_workflow_rule_graph(
    db: DBSession,
    tenant_id: TenantId,
    rule_id: UUID,
    graph_in: WorkflowGraphSave,
) -> WorkflowGraphResponse:
    """Save the graph of a workflow rule.

    Raises:
        HTTPException: 404 if the rule does not exist, 422 if the graph has
            validation errors, 409 if a save is already running, 502 if the
            write failed.
    """
    service = WorkflowRuleService(db)
    rule = await service.get(rule_id, tenant_id)
    if rule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Workflow rule {rule_id} not found",
        )

    async def persist(target_id: UUID | None, payload: RuleGraphPayload) -> None:
        await service.update_graph(target_id or rule_id, payload, tenant_id)

    session = BuilderSession(
        graph_in.graph,
        name=rule.name,
        rule_id=rule_id,
        trigger_type=rule.trigger_type,
        persist=persist,
    )
    if graph_in.name is not None:
        session.rename(graph_in.name)

    try:
        await session.save()
    except WorkflowValidationFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.to_dict(),
        ) from e
    except SaveInProgressError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.to_dict(),
        ) from e
    except WorkflowSaveError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=e.to_dict(),
        ) from e

    return WorkflowGraphResponse(
        rule_id=rule_id,
        name=session.name,
        graph=session.graph,
        errors=session.errors,
        legacy=False,
    )


@router.get(
    "/{rule_id}/export",
    summary="Export workflow rule graph",
    description="Download the rule's graph as a versioned JSON file.",
    response_class=Response,
)
async def export_workflow_rule_graph(
    db: DBSession,
    tenant_id: TenantId,
    rule_id: UUID,
) -> Response:
    """Export the graph of a workflow rule as a file download.

    Raises:
        HTTPException: 404 if the rule does not exist.
    """
    session = await _open_session(WorkflowRuleService(db), rule_id, tenant_id)
    return Response(
        content=session.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": content_disposition(session.export_filename)},
    )
