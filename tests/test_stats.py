"""
Stats snapshot tests: the endpoint shape, the zero-record case, the
arithmetic of each section, and failure propagation.
"""
import asyncio
from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from virtyum.errors import StoreUnavailable
from virtyum.services import service_repository, stats_service


async def _seed(client: AsyncClient, rows: list[dict]) -> None:
    for row in rows:
        payload = {"duration": "Mensual", "description": "desc", **row}
        resp = await client.post("/api/services", json=payload)
        assert resp.status_code == 201, resp.text


@pytest.mark.asyncio
async def test_stats_with_no_services(async_client: AsyncClient):
    """All figures are zero and nothing is NaN/null when the table is empty."""
    resp = await async_client.get("/api/services/stats")
    assert resp.status_code == 200
    stats = resp.json()

    assert stats["overview"] == {
        "totalServices": 0,
        "activeServices": 0,
        "newServices": 0,
        "pausedServices": 0,
        "inactiveServices": 0,
    }
    assert stats["clients"] == {"totalClients": 0}
    assert stats["categories"] == {"totalCategories": 0, "availableCategories": []}
    assert stats["pricing"] == {"averagePrice": 0, "minPrice": 0, "maxPrice": 0}
    assert datetime.fromisoformat(stats["lastUpdated"])


@pytest.mark.asyncio
async def test_stats_sections(async_client: AsyncClient):
    await _seed(async_client, [
        {"name": "SEO", "category": "Digital", "price": 100, "status": "Activo", "clients": 45},
        {"name": "Ads", "category": "Digital", "price": 200, "status": "Activo", "clients": 34},
        {"name": "Video", "category": "Contenido", "price": 250, "status": "Pausado", "clients": 28},
        {"name": "Influencers", "category": "Social", "price": 150},
    ])

    stats = (await async_client.get("/api/services/stats")).json()

    assert stats["overview"] == {
        "totalServices": 4,
        "activeServices": 2,
        "newServices": 1,
        "pausedServices": 1,
        "inactiveServices": 0,
    }
    assert stats["clients"]["totalClients"] == 45 + 34 + 28
    assert stats["categories"]["totalCategories"] == 3
    assert sorted(stats["categories"]["availableCategories"]) == ["Contenido", "Digital", "Social"]
    assert stats["pricing"]["averagePrice"] == 175
    assert stats["pricing"]["minPrice"] == 100
    assert stats["pricing"]["maxPrice"] == 250


@pytest.mark.asyncio
async def test_stats_total_equals_sum_of_status_counts(async_client: AsyncClient):
    await _seed(async_client, [
        {"name": f"Service {i}", "category": "Digital", "price": i, "status": status}
        for i, status in enumerate(["Activo", "Nuevo", "Pausado", "Inactivo", "Activo", "Nuevo"])
    ])

    overview = (await async_client.get("/api/services/stats")).json()["overview"]
    counts = [overview[k] for k in stats_service.STATUS_KEYS.values()]
    assert overview["totalServices"] == sum(counts) == 6


@pytest.mark.asyncio
async def test_average_price_rounds_half_up(async_client: AsyncClient):
    await _seed(async_client, [
        {"name": "A", "category": "Digital", "price": 2},
        {"name": "B", "category": "Digital", "price": 3},
    ])
    pricing = (await async_client.get("/api/services/stats")).json()["pricing"]
    assert pricing["averagePrice"] == 3


@pytest.mark.asyncio
async def test_stats_reflect_deletes(async_client: AsyncClient):
    """The snapshot is recomputed on every request."""
    await _seed(async_client, [{"name": "Only", "category": "Social", "price": 10, "clients": 3}])
    created = (await async_client.get("/api/services")).json()[0]
    assert (await async_client.get("/api/services/stats")).json()["overview"]["totalServices"] == 1

    await async_client.delete(f"/api/services/{created['id']}")
    stats = (await async_client.get("/api/services/stats")).json()
    assert stats["overview"]["totalServices"] == 0
    assert stats["clients"]["totalClients"] == 0


@pytest.mark.asyncio
async def test_compute_snapshot_directly(db_session, session_factory):
    await service_repository.create_service(
        db_session,
        {"name": "Web", "category": "Desarrollo", "price": 2499, "duration": "4-8 semanas",
         "description": "Sitios web", "clients": 23, "status": "Activo"},
    )
    await db_session.commit()

    snapshot = await stats_service.compute_snapshot(session_factory)
    assert snapshot.overview.totalServices == 1
    assert snapshot.overview.activeServices == 1
    assert snapshot.clients.totalClients == 23
    assert snapshot.categories.availableCategories == ["Desarrollo"]
    assert snapshot.pricing.averagePrice == 2499


class _BrokenSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, statement):
        raise OperationalError("SELECT", {}, Exception("store down"))


@pytest.mark.asyncio
async def test_any_failed_reduction_fails_the_snapshot():
    with pytest.raises(StoreUnavailable) as exc_info:
        await stats_service.compute_snapshot(lambda: _BrokenSession())
    assert "store down" in exc_info.value.detail


def test_round_half_up():
    assert stats_service.round_half_up(2.5) == 3
    assert stats_service.round_half_up(183.33) == 183
    assert stats_service.round_half_up(0) == 0


class _Result:
    def scalar_one(self):
        return 0

    def all(self):
        return []


class _TrackingSessions:
    """Session factory whose first session fails at once while the rest are slow."""

    def __init__(self):
        self.opened = 0
        self.closed = 0

    def __call__(self):
        self.opened += 1
        return _TrackingSession(self, fail=self.opened == 1)


class _TrackingSession:
    def __init__(self, owner: _TrackingSessions, fail: bool):
        self.owner = owner
        self.fail = fail

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.owner.closed += 1
        return False

    async def execute(self, statement):
        if self.fail:
            raise OperationalError("SELECT", {}, Exception("store down"))
        await asyncio.sleep(0.05)
        return _Result()


@pytest.mark.asyncio
async def test_failed_snapshot_waits_for_every_reduction():
    """No reduction is still running (or holding a session) once the error surfaces."""
    sessions = _TrackingSessions()
    with pytest.raises(StoreUnavailable):
        await stats_service.compute_snapshot(sessions)
    assert sessions.opened == 8
    assert sessions.closed == 8


@pytest.mark.asyncio
async def test_min_and_max_price_are_whole_numbers_for_whole_prices(async_client: AsyncClient):
    await _seed(async_client, [
        {"name": "A", "category": "Digital", "price": 100},
        {"name": "B", "category": "Digital", "price": 250},
    ])
    resp = await async_client.get("/api/services/stats")
    assert '"minPrice":100,' in resp.text
    assert '"maxPrice":250' in resp.text
    assert '"maxPrice":250.0' not in resp.text
