"""
SecGate - Shared test fixtures

Provides an in-memory SQLAlchemy data store, account factories and mock
executors for the gate runner and API tests.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Ensure the project root is on sys.path so `secgate.*` imports resolve
PROJECT_ROOT = str(Path(__file__).resolve().parent.parent)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ---------------------------------------------------------------------------
# In-memory data store
# ---------------------------------------------------------------------------

@pytest.fixture
async def data_store():
    """SqlAlchemyDataStore over a fresh in-memory SQLite database."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    import secgate.models  # noqa: F401
    from secgate.db.database import Base
    from secgate.services.data_store import SqlAlchemyDataStore

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield SqlAlchemyDataStore(session_factory)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@pytest.fixture
def make_account():
    """Factory fixture that creates Account instances."""
    from secgate.core.account_pool import Account

    def _make(account_id: str, **fields):
        return Account(id=account_id, name=account_id, fields=fields)

    return _make


# ---------------------------------------------------------------------------
# Executors
# ---------------------------------------------------------------------------

@pytest.fixture
def template_executor():
    """Template executor that succeeds with no findings."""
    from secgate.services.executors import ExecutionResult

    executor = AsyncMock()
    executor.run = AsyncMock(return_value=ExecutionResult(success=True, findings_count=0))
    return executor


@pytest.fixture
def workflow_executor():
    """Workflow executor that succeeds with no findings."""
    from secgate.services.executors import ExecutionResult

    executor = AsyncMock()
    executor.run = AsyncMock(return_value=ExecutionResult(success=True, findings_count=0))
    return executor
