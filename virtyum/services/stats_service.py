"""
Catalog statistics snapshot.

The snapshot is a handful of independent reductions over the services
table (counts per status, client total, distinct categories, price
summary).  Each reduction runs in its own session so the queries can be
in flight at the same time; results are merged once every one of them
has finished.  If any reduction fails the whole snapshot fails.

Nothing is cached: every call reflects the table at that moment.
"""
import asyncio
import logging
import math

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from virtyum.errors import StoreUnavailable
from virtyum.models import Service, utcnow
from virtyum.schemas import StatsSnapshot
from virtyum.services.service_repository import as_number

logger = logging.getLogger(__name__)

# Snapshot key for each status count in the overview section.
STATUS_KEYS: dict[str, str] = {
    "Activo": "activeServices",
    "Nuevo": "newServices",
    "Pausado": "pausedServices",
    "Inactivo": "inactiveServices",
}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


async def _scalar(session_factory: async_sessionmaker[AsyncSession], q):
    async with session_factory() as session:
        return (await session.execute(q)).scalar_one()


async def _all(session_factory: async_sessionmaker[AsyncSession], q):
    async with session_factory() as session:
        return (await session.execute(q)).all()


async def compute_snapshot(session_factory: async_sessionmaker[AsyncSession]) -> StatsSnapshot:
    """Run every reduction concurrently and merge them into one snapshot."""
    count_all = select(func.count()).select_from(Service)
    status_counts = [
        select(func.count()).select_from(Service).where(Service.status == status)
        for status in STATUS_KEYS
    ]
    clients_total = select(func.coalesce(func.sum(Service.clients), 0))
    categories_q = select(distinct(Service.category)).order_by(Service.category)
    pricing_q = select(func.avg(Service.price), func.min(Service.price), func.max(Service.price))

    # Wait for every reduction (and its session) to finish before reporting
    # a failure, so no query is left running after the request returns.
    results = await asyncio.gather(
        _scalar(session_factory, count_all),
        *(_scalar(session_factory, q) for q in status_counts),
        _scalar(session_factory, clients_total),
        _all(session_factory, categories_q),
        _all(session_factory, pricing_q),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        for extra in failures[1:]:
            logger.warning("Additional statistics reduction failed: %r", extra)
        exc = failures[0]
        if isinstance(exc, SQLAlchemyError):
            logger.error("Computing service statistics failed", exc_info=exc)
            raise StoreUnavailable("Internal server error while computing statistics", str(exc)) from exc
        raise exc

    total, *per_status, clients, category_rows, pricing_rows = results
    categories = [row[0] for row in category_rows]
    average, minimum, maximum = pricing_rows[0] if pricing_rows else (None, None, None)

    overview = {"totalServices": total}
    overview.update(dict(zip(STATUS_KEYS.values(), per_status)))

    return StatsSnapshot(
        overview=overview,
        clients={"totalClients": int(clients or 0)},
        categories={
            "totalCategories": len(categories),
            "availableCategories": categories,
        },
        pricing={
            "averagePrice": round_half_up(average) if average is not None else 0,
            "minPrice": as_number(minimum) if minimum is not None else 0,
            "maxPrice": as_number(maximum) if maximum is not None else 0,
        },
        lastUpdated=utcnow().isoformat(),
    )
