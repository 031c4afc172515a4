"""Workflow Field catalog API Router.

Serves the entity field catalog that condition and trigger-filter
editors pick fields from.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from workflow_builder.api.deps import Catalog  # noqa: TC001 - Required at runtime for FastAPI
from workflow_builder.models.enums import EntityType
from workflow_builder.services.workflow.fields import (
    FieldCatalogEntry,
    catalog_entries,
    catalog_entry,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[FieldCatalogEntry],
    summary="List catalogued fields",
)
async def list_fields(
    catalog: Catalog,
    entity: Annotated[
        EntityType | None,
        Query(description="Only fields of this entity"),
    ] = None,
) -> list[FieldCatalogEntry]:
    """List fields, in catalog order.

    Args:
        catalog: Field catalog.
        entity: Optional entity filter.

    Returns:
        Catalog entries with their dotted path and input kind.
    """
    return catalog_entries(catalog, entity)


@router.get(
    "/{path:path}",
    response_model=FieldCatalogEntry,
    summary="Resolve field path",
)
async def resolve_field(catalog: Catalog, path: str) -> FieldCatalogEntry:
    """Resolve one dotted field path.

    Raises:
        HTTPException: 404 if the path is not catalogued.
    """
    field = catalog.resolve(path)
    if field is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Field {path} not found",
        )
    return catalog_entry(catalog, field)
