"""API dependencies.

Common dependencies for API routes: database sessions, the current
tenant and the field catalog.
"""

from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workflow_builder.core.config import settings
from workflow_builder.db.session import get_db
from workflow_builder.services.workflow.fields import FieldCatalog

# =============================================================================
# Database Session Dependency
# =============================================================================

DBSession = Annotated[AsyncSession, Depends(get_db)]
"""Type alias for database session dependency injection.

Usage:
    @router.get("/items")
    async def get_items(db: DBSession):
        result = await db.execute(select(Item))
        return result.scalars().all()
"""


# =============================================================================
# Tenant Dependency
# =============================================================================


def get_tenant_id() -> UUID:
    """Tenant the request acts for.

    There is no authentication yet, so every request belongs to the
    configured default tenant.
    """
    return settings.DEFAULT_TENANT_ID


TenantId = Annotated[UUID, Depends(get_tenant_id)]


# =============================================================================
# Field Catalog Dependency
# =============================================================================


@lru_cache
def get_field_catalog() -> FieldCatalog:
    """Built-in field catalog, created once per process."""
    return FieldCatalog.default()


Catalog = Annotated[FieldCatalog, Depends(get_field_catalog)]


__all__ = [
    "Catalog",
    "DBSession",
    "TenantId",
    "get_db",
    "get_field_catalog",
    "get_tenant_id",
]
