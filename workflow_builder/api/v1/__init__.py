"""API v1 routing configuration.

This module defines all v1 API routes.
"""

from fastapi import APIRouter

from workflow_builder.api.v1 import workflow_fields, workflow_graphs, workflow_rules

router = APIRouter()

# Domain routers
router.include_router(workflow_rules.router, prefix="/workflow-rules", tags=["Workflow Rules"])
router.include_router(workflow_graphs.router, prefix="/workflow-graphs", tags=["Workflow Graphs"])
router.include_router(workflow_fields.router, prefix="/workflow-fields", tags=["Workflow Fields"])


@router.get("/status", tags=["Status"])
async def api_status() -> dict[str, str]:
    """API v1 status check."""
    return {"status": "ok", "version": "v1"}
