"""
SecGate - Data Store

Collection-style CRUD over the persisted entities. The gate runner only
talks to the abstract DataStore; SqlAlchemyDataStore is the production
implementation on top of the async session factory.

Every repository speaks plain dicts (the models' to_dict() shape), so
callers never hold ORM instances across await points.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import async_sessionmaker

from secgate.db.database import Base, async_session_maker
from secgate.models import (
    AccountRecord,
    DropRuleRecord,
    Environment,
    GatePolicyRecord,
    SecurityRun,
    SecuritySuite,
    TestRun,
)

logger = logging.getLogger(__name__)


class EntityNotFoundError(Exception):
    """Raised when an update or delete targets an id that does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class Repository(ABC):
    """Async CRUD contract for one entity collection."""

    @abstractmethod
    async def find_all(
        self,
        where: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[dict]:
        ...

    @abstractmethod
    async def find_by_id(self, entity_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    async def create(self, data: Dict[str, Any]) -> dict:
        ...

    @abstractmethod
    async def update(self, entity_id: str, data: Dict[str, Any]) -> dict:
        """Apply a partial update; raises EntityNotFoundError for unknown ids."""
        ...

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        ...

    @abstractmethod
    async def count(self, where: Optional[Dict[str, Any]] = None) -> int:
        ...


class DataStore(ABC):
    """Entity collections consumed by the gate runner and the API."""

    accounts: Repository
    environments: Repository
    gate_policies: Repository
    security_suites: Repository
    security_runs: Repository
    test_runs: Repository
    drop_rules: Repository


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------

class SqlAlchemyRepository(Repository):
    """Repository backed by one ORM model; each call runs in its own session."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        model: Type[Base],
        aliases: Optional[Dict[str, str]] = None,
    ):
        self._session_factory = session_factory
        self.model = model
        # dict key -> mapped attribute name, for columns whose attribute differs
        self._aliases = aliases or {}

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    def _attr(self, key: str) -> str:
        name = self._aliases.get(key, key)
        if name not in self.model.__mapper__.attrs:
            raise ValueError(f"{self.entity_name} has no field '{key}'")
        return name

    def _filtered(self, query, where: Optional[Dict[str, Any]]):
        for key, value in (where or {}).items():
            query = query.where(getattr(self.model, self._attr(key)) == value)
        return query

    async def find_all(self, where=None, limit=None, offset=None) -> List[dict]:
        query = self._filtered(select(self.model), where)
        if hasattr(self.model, "created_at"):
            query = query.order_by(self.model.created_at)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return [row.to_dict() for row in result.scalars().all()]

    async def find_by_id(self, entity_id: str) -> Optional[dict]:
        async with self._session_factory() as session:
            obj = await session.get(self.model, entity_id)
            return obj.to_dict() if obj else None

    async def create(self, data: Dict[str, Any]) -> dict:
        values = {self._attr(k): v for k, v in data.items()}
        async with self._session_factory() as session:
            obj = self.model(**values)
            session.add(obj)
            await session.commit()
            logger.debug(f"Created {self.entity_name} {obj.id}")
            return obj.to_dict()

    async def update(self, entity_id: str, data: Dict[str, Any]) -> dict:
        async with self._session_factory() as session:
            obj = await session.get(self.model, entity_id)
            if obj is None:
                raise EntityNotFoundError(self.entity_name, entity_id)
            for key, value in data.items():
                setattr(obj, self._attr(key), value)
            await session.commit()
            return obj.to_dict()

    async def delete(self, entity_id: str) -> bool:
        async with self._session_factory() as session:
            obj = await session.get(self.model, entity_id)
            if obj is None:
                return False
            await session.delete(obj)
            await session.commit()
            return True

    async def count(self, where=None) -> int:
        query = self._filtered(select(func.count()).select_from(self.model), where)
        async with self._session_factory() as session:
            result = await session.execute(query)
            return result.scalar() or 0


class SqlAlchemyDataStore(DataStore):
    """DataStore over the application's async SQLAlchemy engine."""

    def __init__(self, session_factory: async_sessionmaker = async_session_maker):
        self.session_factory = session_factory
        self.accounts = SqlAlchemyRepository(session_factory, AccountRecord)
        self.environments = SqlAlchemyRepository(session_factory, Environment)
        self.gate_policies = SqlAlchemyRepository(session_factory, GatePolicyRecord)
        self.security_suites = SqlAlchemyRepository(session_factory, SecuritySuite)
        self.security_runs = SqlAlchemyRepository(
            session_factory, SecurityRun, aliases={"metadata": "run_metadata"}
        )
        self.test_runs = SqlAlchemyRepository(session_factory, TestRun)
        self.drop_rules = SqlAlchemyRepository(session_factory, DropRuleRecord)


def get_data_store() -> DataStore:
    """FastAPI dependency returning the default data store."""
    return SqlAlchemyDataStore()
