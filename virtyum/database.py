import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from virtyum.config import settings
from virtyum.middleware import install_query_counter

logger = logging.getLogger(__name__)

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    connect_args={"timeout": settings.DB_CONNECT_TIMEOUT},
)

# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


class StoreConnection:
    """
    Connectivity state for one engine.

    ``ensure_connected`` is idempotent: the first caller performs a
    round-trip and every later caller returns immediately.  Concurrent
    first callers are serialised by a lock so only one probe is issued.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._connected = False
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._connected

    async def ensure_connected(self) -> None:
        if self._connected:
            return
        async with self._lock:
            if self._connected:
                return
            try:
                async with self._engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except Exception:
                logger.error("Store connection failed: %s", self._engine.url.render_as_string(hide_password=True))
                raise
            self._connected = True
            logger.info("Store connected: %s", self._engine.url.render_as_string(hide_password=True))

    async def ping(self) -> bool:
        """Return True when the store answers a trivial query right now."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("Store ping failed: %s", exc)
            self._connected = False
            return False
        self._connected = True
        return True

    async def dispose(self) -> None:
        await self._engine.dispose()
        self._connected = False


store = StoreConnection(engine)


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that needs several independent sessions."""
    return async_session


def get_store() -> StoreConnection:
    return store
