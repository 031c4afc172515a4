"""pytest configuration and fixtures.

This module provides the async database fixtures (SQLite in-memory with
rollback), the HTTP client used by API tests, and small graph builders
shared by the engine tests.
"""

from collections.abc import AsyncGenerator, Callable
from typing import cast
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from starlette.types import ASGIApp

from workflow_builder.core.config import settings
from workflow_builder.main import app
from workflow_builder.models import Base, WorkflowRule
from workflow_builder.models.enums import NodeType, SourceHandle
from workflow_builder.schemas.workflow_graph import (
    Position,
    Viewport,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)
from workflow_builder.services.workflow.factory import IdGenerator, create_edge, create_node

# =============================================================================
# ASYNC ENGINE FIXTURES (SQLite In-Memory for Tests)
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an async SQLite in-memory engine for testing.

    All tables are created on setup and dropped on teardown. A static
    pool keeps every session on the one in-memory database.

    Yields:
        AsyncEngine: SQLAlchemy async engine backed by SQLite in-memory.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_session_maker(
    async_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# =============================================================================
# DATABASE SESSION FIXTURES WITH ROLLBACK
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_session(
    async_session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide a database session that is rolled back after each test.

    Services only flush, so everything a test writes stays in the open
    transaction and is discarded on teardown.

    Example:
        async def test_create_rule(db_session):
            db_session.add(WorkflowRule(tenant_id=uuid4(), name="Rule"))
            await db_session.flush()
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


# =============================================================================
# HTTP CLIENT FIXTURES
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing API endpoints.

    Uses ASGI transport to test the FastAPI app without running a server,
    with the database dependency overridden to use the test session.

    Example:
        async def test_list_rules(async_client):
            response = await async_client.get("/api/v1/workflow-rules/")
            assert response.status_code == 200
    """
    from workflow_builder.db.session import get_db

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        """Override database dependency to use test session."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    try:
        transport = ASGITransport(app=cast("ASGIApp", app))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def tenant_id() -> UUID:
    """Tenant every API request acts for."""
    return settings.DEFAULT_TENANT_ID


@pytest_asyncio.fixture
async def sample_rule(db_session: AsyncSession, tenant_id: UUID) -> WorkflowRule:
    """A persisted legacy rule (no graph yet)."""
    rule = WorkflowRule(
        tenant_id=tenant_id,
        name="Auto approve",
        trigger_type="status_changed",
        conditions={},
        actions=[{"type": "approve", "params": {}}],
        active=True,
        sort_order=0,
    )
    db_session.add(rule)
    await db_session.flush()
    await db_session.refresh(rule)
    return rule


# =============================================================================
# GRAPH BUILDERS
# =============================================================================


@pytest.fixture
def ids() -> IdGenerator:
    """Deterministic id source: node_t_1, edge_t_2, ..."""
    return IdGenerator(session="t")


def make_node(
    node_id: str,
    node_type: NodeType | str,
    x: float = 0,
    y: float = 0,
    label: str | None = None,
    **data: object,
) -> WorkflowNode:
    """Node with a fixed id and the default payload for its type."""
    return create_node(
        node_type,
        Position(x=x, y=y),
        label if label is not None else node_id,
        data or None,
        id_factory=lambda: node_id,
    )


def make_edge(
    source: str,
    target: str,
    handle: SourceHandle | str | None = None,
    edge_id: str | None = None,
) -> WorkflowEdge:
    """Edge literal with a readable id."""
    suffix = f"-{handle}" if handle else ""
    return create_edge(
        source,
        target,
        handle,
        id_factory=lambda: edge_id or f"{source}-{target}{suffix}",
    )


@pytest.fixture
def node_factory() -> Callable[..., WorkflowNode]:
    return make_node


@pytest.fixture
def edge_factory() -> Callable[..., WorkflowEdge]:
    return make_edge


@pytest.fixture
def valid_graph() -> WorkflowGraph:
    """trigger -> condition -(true)-> approve, -(false)-> reject."""
    return WorkflowGraph(
        nodes=[
            make_node("trigger", NodeType.TRIGGER, 80, 120, "Return created", event_type="return_created"),
            make_node("check", NodeType.CONDITION, 400, 120, "High value"),
            make_node("approve", NodeType.ACTION, 720, 40, "Approve", action_type="approve"),
            make_node("reject", NodeType.ACTION, 720, 220, "Reject", action_type="reject"),
        ],
        edges=[
            make_edge("trigger", "check"),
            make_edge("check", "approve", SourceHandle.TRUE),
            make_edge("check", "reject", SourceHandle.FALSE),
        ],
        viewport=Viewport(x=10, y=20, zoom=0.8),
    )
