"""
DocMeta Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the whole suite.
How:   Persistence tests run against an in-memory SQLite database built from
       Base.metadata for every test, so nothing needs a running PostgreSQL.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for isolated service tests
    ├── db_engine:       in-memory SQLite engine with the schema created
    ├── db_session:      AsyncSession on db_engine
    ├── seed:            users, repositories, modules and one entity
    ├── login:           sets the user the HTTP client is logged in as
    └── test_client:     HTTPX AsyncClient wired to the app, DB and login overrides
"""

import os

# Must happen before docmeta.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from docmeta.database import Base
from docmeta.models import Entity, Module, Property, Repository, User, repositories_members


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = entity
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    # StaticPool: every connection shares the one in-memory database
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(db_session):
    """
    Baseline data:
        alice  owns the public repository `shop` (modules: orders, billing)
        bob    is a member of `shop`
        carol  owns the private repository `vault` (module: secrets)
        dave   belongs to nothing
        `Order` is a struct entity in shop/orders with two request properties
        and a nested response tree.
    """
    alice = User(fullname="Alice", email="alice@example.com")
    bob = User(fullname="Bob", email="bob@example.com")
    carol = User(fullname="Carol", email="carol@example.com")
    dave = User(fullname="Dave", email="dave@example.com")
    db_session.add_all([alice, bob, carol, dave])
    await db_session.flush()

    shop = Repository(name="shop", owner_id=alice.id, visibility=True)
    vault = Repository(name="vault", owner_id=carol.id, visibility=False)
    db_session.add_all([shop, vault])
    await db_session.flush()

    await db_session.execute(
        insert(repositories_members).values(repository_id=shop.id, user_id=bob.id)
    )

    orders = Module(name="orders", repository_id=shop.id, creator_id=alice.id)
    billing = Module(name="billing", repository_id=shop.id, creator_id=alice.id)
    secrets = Module(name="secrets", repository_id=vault.id, creator_id=carol.id)
    db_session.add_all([orders, billing, secrets])
    await db_session.flush()

    order = Entity(
        type="struct",
        name="Order",
        namespace="shop.orders",
        description="A placed order",
        repository_id=shop.id,
        module_id=orders.id,
        creator_id=alice.id,
        priority=1,
    )
    db_session.add(order)
    await db_session.flush()

    order_id = Property(entity_id=order.id, scope="request", name="orderId", type="Number", priority=1)
    token = Property(entity_id=order.id, scope="request", name="token", type="String", pos=1, priority=2)
    items = Property(entity_id=order.id, scope="response", name="items", type="Array", priority=3)
    db_session.add_all([order_id, token, items])
    await db_session.flush()

    sku = Property(
        entity_id=order.id, scope="response", name="sku", type="RegExp",
        value="/^[A-Z]{3}-\\d+$/i", parent_id=items.id, priority=4,
    )
    price = Property(
        entity_id=order.id, scope="response", name="price", type="Function",
        value="function() { return 9.99 }", parent_id=items.id, priority=5,
    )
    db_session.add_all([sku, price])
    await db_session.commit()

    return SimpleNamespace(
        alice=alice, bob=bob, carol=carol, dave=dave,
        shop=shop, vault=vault,
        orders=orders, billing=billing, secrets=secrets,
        order=order, items=items,
    )


@pytest.fixture
def login():
    """
    Controls who the HTTP client is logged in as.

    Usage:
        login(seed.alice.id)   # later requests carry Alice's session
        login(None)            # anonymous
    """
    state = SimpleNamespace(user_id=None)

    def _login(user_id: Optional[int]) -> None:
        state.user_id = user_id

    _login.state = state
    return _login


@pytest_asyncio.fixture
async def test_client(db_engine, login):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    get_db_session is swapped for sessions on the test engine (same
    commit/rollback contract), and get_session_user_id for the `login` state.
    """
    from docmeta.database import get_db_session
    from docmeta.main import app
    from docmeta.session import get_session_user_id

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_session_user_id] = lambda: login.state.user_id

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
