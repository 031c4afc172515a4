"""Workflow Graph tooling API Router.

Stateless endpoints over posted graph documents: import-file parsing,
validation, auto-layout, fit-to-view and condition preview. Nothing here
reads or writes the database.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from workflow_builder.core.logging import get_logger
from workflow_builder.models.enums import SourceHandle
from workflow_builder.schemas.validation import ValidationReport
from workflow_builder.schemas.workflow_graph import WorkflowGraph
from workflow_builder.schemas.workflow_rule import (
    ConditionPreviewRequest,
    ConditionPreviewResponse,
    FitToViewRequest,
    FitToViewResponse,
    GraphImportRequest,
    GraphWithErrors,
)
from workflow_builder.services.workflow.conditions import branch_for
from workflow_builder.services.workflow.exceptions import GraphImportError
from workflow_builder.services.workflow.layout import auto_layout_graph, compute_fit_to_view
from workflow_builder.services.workflow.serialization import import_graph_json
from workflow_builder.services.workflow.validator import validate_workflow, validation_report

router = APIRouter()

logger = get_logger(__name__)


@router.post(
    "/import",
    response_model=GraphWithErrors,
    summary="Import graph file",
    description="Parse and version-check an exported graph file.",
)
async def import_graph(body: GraphImportRequest) -> GraphWithErrors:
    """Parse an export file.

    Raises:
        HTTPException: 400 if the file is malformed or has another version.
    """
    try:
        graph = import_graph_json(body.content)
    except GraphImportError as e:
        logger.warning(
            "Rejected workflow import",
            extra={"context": {"error_code": e.error_code, "reason": e.reason}},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.to_dict(),
        ) from e
    return GraphWithErrors(graph=graph, errors=validate_workflow(graph))


@router.post(
    "/validate",
    response_model=ValidationReport,
    summary="Validate graph",
)
async def validate_graph(graph: WorkflowGraph) -> ValidationReport:
    """Structural validation errors of a graph (never fails)."""
    return validation_report(graph)


@router.post(
    "/auto-layout",
    response_model=WorkflowGraph,
    summary="Auto-layout graph",
    description="Arrange nodes in layers from the trigger.",
)
async def auto_layout(graph: WorkflowGraph) -> WorkflowGraph:
    return auto_layout_graph(graph)


@router.post(
    "/fit-to-view",
    response_model=FitToViewResponse,
    summary="Fit graph to view",
)
async def fit_to_view(body: FitToViewRequest) -> FitToViewResponse:
    """Viewport that frames every node of a graph on a canvas."""
    viewport = compute_fit_to_view(
        body.graph.nodes,
        body.canvas_width,
        body.canvas_height,
        padding=body.padding,
    )
    return FitToViewResponse(viewport=viewport)


@router.post(
    "/preview-condition",
    response_model=ConditionPreviewResponse,
    summary="Preview condition",
    description="Evaluate a condition node against a sample record.",
)
async def preview_condition(body: ConditionPreviewRequest) -> ConditionPreviewResponse:
    branch = branch_for(body.condition, body.context)
    return ConditionPreviewResponse(result=branch == SourceHandle.TRUE, branch=branch)
