"""pytest configuration and fixtures for the DAG execution engine.

TAG: [TESTING] [PYTEST] [FIXTURES]

This module provides async database sessions with transaction rollback,
an HTTP client bound to the FastAPI app, and factories for graph
definitions and execution requests.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Any, cast

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Session
from starlette.types import ASGIApp

# Import app (required for async_client fixture)
from dag_engine.main import app
from dag_engine.models import Base
from dag_engine.schemas.dag import DagExecutionRequest, GraphDefinition, NodeDefinition
from dag_engine.services.dag import (
    ExecutionCoordinator,
    InMemoryAuditSink,
    OperationRegistry,
    ResultCache,
)

NodeFactory = Callable[..., NodeDefinition]
RequestFactory = Callable[..., DagExecutionRequest]

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests",
    )


# =============================================================================
# ASYNC ENGINE FIXTURES (SQLite In-Memory for Tests)
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an async SQLite in-memory engine for testing.

    All tables are created on setup and dropped on teardown.

    Yields:
        AsyncEngine: SQLAlchemy async engine backed by SQLite in-memory.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
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
# DATABASE SESSION FIXTURES WITH TRANSACTION ROLLBACK
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_session(
    async_session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide a database session with automatic rollback after each test.

    The fixture uses nested transactions (SAVEPOINT) to allow for
    commit operations within tests while still rolling back at the end.

    Yields:
        AsyncSession: Database session with automatic rollback.
    """
    async with async_session_maker() as session:
        session.begin_nested()

        # If the test calls session.commit(), this event will restart the nested transaction
        @event.listens_for(session.sync_session, "after_transaction_end")
        def _restart_savepoint(session_sync: Session, transaction) -> None:
            if transaction.nested and not transaction._parent.nested:
                session_sync.expire_all()
                session_sync.begin_nested()

        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def result_cache() -> ResultCache:
    """A fresh in-memory result cache, isolated from the process-wide one."""
    return ResultCache()


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def registry() -> OperationRegistry:
    """A registry holding only the built-in operations."""
    return OperationRegistry()


@pytest.fixture
def coordinator(
    registry: OperationRegistry,
    result_cache: ResultCache,
    audit_sink: InMemoryAuditSink,
) -> ExecutionCoordinator:
    """Coordinator wired to the isolated cache, registry and audit sink."""
    return ExecutionCoordinator(
        registry=registry,
        cache=result_cache,
        audit_sink=audit_sink,
        bottleneck_threshold_ms=100.0,
        max_parallel_nodes=10,
        default_node_timeout_ms=5_000,
    )


# =============================================================================
# HTTP CLIENT FIXTURES
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession,
    result_cache: ResultCache,
) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing API endpoints.

    Uses ASGI transport to test the FastAPI app without running a server.
    Overrides the database dependency with the test session and the cache
    dependency with a fresh cache, so runs never leak between tests.

    Yields:
        AsyncClient: HTTP client configured for testing.
    """
    from dag_engine.api.deps import get_cache
    from dag_engine.db.session import get_db

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        """Override database dependency to use test session."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: result_cache

    try:
        transport = ASGITransport(app=cast("ASGIApp", app))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


# =============================================================================
# GRAPH FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def node_factory() -> NodeFactory:
    """Factory for node definitions.

    Example:
        def test_something(node_factory):
            node = node_factory("markup", "apply_markup", deps=["cost"])
    """

    def _create_node(
        node_id: str,
        function_name: str = "calculate_cost",
        *,
        deps: list[str] | None = None,
        kind: str = "calculation",
        parameters: dict[str, Any] | None = None,
        **extra: Any,
    ) -> NodeDefinition:
        return NodeDefinition(
            id=node_id,
            name=node_id.replace("_", " ").title(),
            kind=kind,
            dependencies=deps or [],
            operation={"function_name": function_name, "parameters": parameters or {}},
            **extra,
        )

    return _create_node


@pytest.fixture
def request_factory() -> RequestFactory:
    """Factory for execution requests around a list of nodes.

    Example:
        def test_something(request_factory, node_factory):
            request = request_factory([node_factory("cost")], input_data={"base_amount": 10})
    """

    def _create_request(
        nodes: list[NodeDefinition],
        *,
        input_data: dict[str, Any] | None = None,
        organization_id: str = "org-1",
        graph_id: str = "test-graph",
        execution_order: list[str] | None = None,
        timeout_ms: int | None = None,
        optimization: dict[str, Any] | None = None,
        monitoring: dict[str, Any] | None = None,
    ) -> DagExecutionRequest:
        return DagExecutionRequest(
            organization_id=organization_id,
            graph=GraphDefinition(
                id=graph_id,
                name=graph_id,
                nodes=nodes,
                execution_order=execution_order,
            ),
            context={"input_data": input_data or {}, "timeout_ms": timeout_ms},
            optimization=optimization or {},
            monitoring=monitoring or {},
        )

    return _create_request


@pytest.fixture
def pricing_nodes(node_factory: NodeFactory) -> list[NodeDefinition]:
    """cost -> markup -> validate chain."""
    return [
        node_factory("cost", "calculate_cost"),
        node_factory("markup", "apply_markup", deps=["cost"], kind="transformation"),
        node_factory(
            "validate",
            "validate_threshold",
            deps=["markup"],
            kind="validation",
            parameters={"min_value": 0, "max_value": 1000},
        ),
    ]


@pytest.fixture
def pricing_request(
    pricing_nodes: list[NodeDefinition],
    request_factory: RequestFactory,
) -> DagExecutionRequest:
    """The pricing chain with ``base_amount=100`` and ``markup_percent=25``."""
    return request_factory(
        pricing_nodes,
        input_data={"base_amount": 100, "markup_percent": 25},
        graph_id="pricing",
    )


@pytest.fixture
def pricing_payload() -> dict[str, Any]:
    """Wire-format body of the pricing chain, as posted to the execute endpoint."""
    return {
        "organization_id": "org-1",
        "dag_definition": {
            "dag_id": "pricing",
            "dag_name": "Pricing",
            "nodes": [
                {
                    "node_id": "cost",
                    "node_name": "Cost",
                    "node_type": "calculation",
                    "execution_config": {"function": "calculate_cost", "parameters": {}},
                },
                {
                    "node_id": "markup",
                    "node_name": "Markup",
                    "node_type": "transformation",
                    "depends_on": ["cost"],
                    "execution_config": {"function": "apply_markup", "parameters": {}},
                },
                {
                    "node_id": "validate",
                    "node_name": "Validate",
                    "node_type": "validation",
                    "depends_on": ["markup"],
                    "execution_config": {
                        "function": "validate_threshold",
                        "parameters": {"min_value": 0, "max_value": 1000},
                    },
                },
            ],
        },
        "execution_context": {
            "trigger_event": "price_update",
            "input_data": {"base_amount": 100, "markup_percent": 25},
            "execution_mode": "sync",
        },
    }
