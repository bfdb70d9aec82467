"""Tests for endpoint classification and the aggregator."""

from datetime import datetime, timedelta, timezone

import pytest

from codepruner.analysis.aggregator import Aggregator
from codepruner.analysis.classifier import ACTIVE_THRESHOLD, LOOKBACK_DAYS, classify
from codepruner.analysis.store import StatusStore
from codepruner.common.config import PrunerSettings
from codepruner.common.database import DatabaseManager
from codepruner.common.exceptions import AnalysisError
from codepruner.common.timeutil import ensure_utc
from codepruner.events.schemas import TrackedEvent
from codepruner.events.store import EventStore
from codepruner.tenants.service import TenantService


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_settings(**overrides) -> PrunerSettings:
    defaults = {"db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return PrunerSettings(**defaults)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def aggregator(db):
    return Aggregator(db)


async def _create_tenant(db, slug):
    async with db.get_session() as session:
        tenant, _ = await TenantService().create_tenant(session, slug.title(), slug)
    return tenant.id


async def _track(db, tenant_id, route, count, method="GET", age=timedelta(days=1)):
    async with db.get_session() as session:
        await EventStore().insert_many(session, tenant_id, [
            TrackedEvent(
                method=method, route=route, status_code=200,
                timestamp=NOW - age - timedelta(minutes=i),
            )
            for i in range(count)
        ])


async def _statuses(db, tenant_id):
    async with db.get_session() as session:
        rows = await StatusStore().list_for_tenant(session, tenant_id)
    return {(r.method, r.route): r for r in rows}


class TestClassify:
    def test_boundaries(self):
        assert classify(0) == "dead"
        assert classify(1) == "risky"
        assert classify(4) == "risky"
        assert classify(5) == "active"
        assert classify(10_000) == "active"

    def test_constants(self):
        assert ACTIVE_THRESHOLD == 5
        assert LOOKBACK_DAYS == 60


class TestAnalyzeTenant:
    async def test_groups_by_method_and_route(self, db, aggregator):
        tenant_id = await _create_tenant(db, "shop")
        await _track(db, tenant_id, "/users/:id", 4)
        await _track(db, tenant_id, "/users/:id", 5, method="DELETE")
        await _track(db, tenant_id, "/orders", 1)

        assert await aggregator.analyze_tenant(tenant_id, now=NOW) == 3

        rows = await _statuses(db, tenant_id)
        assert rows[("GET", "/users/:id")].status == "risky"
        assert rows[("GET", "/users/:id")].call_count == 4
        assert rows[("DELETE", "/users/:id")].status == "active"
        assert rows[("GET", "/orders")].status == "risky"

    async def test_last_called_at_is_latest_event(self, db, aggregator):
        tenant_id = await _create_tenant(db, "shop")
        await _track(db, tenant_id, "/a", 3, age=timedelta(hours=2))
        await aggregator.analyze_tenant(tenant_id, now=NOW)

        row = (await _statuses(db, tenant_id))[("GET", "/a")]
        assert ensure_utc(row.last_called_at) == NOW - timedelta(hours=2)
        assert ensure_utc(row.analyzed_at) == NOW

    async def test_events_outside_lookback_ignored(self, db, aggregator):
        tenant_id = await _create_tenant(db, "shop")
        await _track(db, tenant_id, "/old", 10, age=timedelta(days=61))
        await _track(db, tenant_id, "/edge", 5, age=timedelta(days=59))

        await aggregator.analyze_tenant(tenant_id, now=NOW)
        rows = await _statuses(db, tenant_id)
        assert ("GET", "/old") not in rows
        assert rows[("GET", "/edge")].call_count == 5

    async def test_full_replace_drops_stale_rows(self, db, aggregator):
        tenant_id = await _create_tenant(db, "shop")
        await _track(db, tenant_id, "/a", 1, age=timedelta(days=30))
        await _track(db, tenant_id, "/b", 1)
        await aggregator.analyze_tenant(tenant_id, now=NOW)
        assert set(await _statuses(db, tenant_id)) == {("GET", "/a"), ("GET", "/b")}

        # 40 days later /a has fallen out of the window.
        later = NOW + timedelta(days=40)
        await aggregator.analyze_tenant(tenant_id, now=later)
        assert set(await _statuses(db, tenant_id)) == {("GET", "/b")}

    async def test_no_events_clears_statuses(self, db, aggregator):
        tenant_id = await _create_tenant(db, "shop")
        await _track(db, tenant_id, "/a", 2)
        await aggregator.analyze_tenant(tenant_id, now=NOW)

        assert await aggregator.analyze_tenant(tenant_id, now=NOW + timedelta(days=90)) == 0
        assert await _statuses(db, tenant_id) == {}

    async def test_idempotent_without_new_events(self, db, aggregator):
        tenant_id = await _create_tenant(db, "shop")
        await _track(db, tenant_id, "/a", 7)
        await _track(db, tenant_id, "/b", 2, method="POST")

        await aggregator.analyze_tenant(tenant_id, now=NOW)
        first = await _statuses(db, tenant_id)
        await aggregator.analyze_tenant(tenant_id, now=NOW + timedelta(minutes=5))
        second = await _statuses(db, tenant_id)

        def snapshot(rows):
            return {
                key: (r.status, r.call_count, ensure_utc(r.last_called_at))
                for key, r in rows.items()
            }

        assert snapshot(first) == snapshot(second)
        for key in second:
            assert ensure_utc(second[key].analyzed_at) > ensure_utc(first[key].analyzed_at)

    async def test_other_tenants_untouched(self, db, aggregator):
        a = await _create_tenant(db, "a")
        b = await _create_tenant(db, "b")
        await _track(db, a, "/a", 1)
        await _track(db, b, "/b", 1)
        await aggregator.analyze_tenant(b, now=NOW)

        await aggregator.analyze_tenant(a, now=NOW)
        assert set(await _statuses(db, b)) == {("GET", "/b")}

    async def test_tenant_locks_released_after_run(self, db, aggregator):
        tenant_id = await _create_tenant(db, "shop")
        await _track(db, tenant_id, "/a", 1)
        await aggregator.analyze_tenant(tenant_id, now=NOW)
        for i in range(20):
            assert await aggregator.analyze_tenant(f"unknown-{i}", now=NOW) == 0
        assert len(aggregator._locks) == 0

    async def test_lock_shared_while_held(self, aggregator):
        lock = aggregator._lock_for("shop")
        async with lock:
            assert aggregator._lock_for("shop") is lock
            assert aggregator._lock_for("shop").locked()

    async def test_failure_raises_analysis_error(self, db, aggregator, monkeypatch):
        tenant_id = await _create_tenant(db, "shop")

        async def broken(session, tenant_id, since):
            raise ValueError("malformed")

        monkeypatch.setattr(aggregator.events, "usage_since", broken)
        with pytest.raises(AnalysisError) as exc:
            await aggregator.analyze_tenant(tenant_id, now=NOW)
        assert "malformed" in exc.value.message


class TestAnalyzeAll:
    async def test_failing_tenant_isolated(self, db, aggregator, monkeypatch):
        a = await _create_tenant(db, "a")
        b = await _create_tenant(db, "b")
        await _track(db, a, "/a", 5)
        await _track(db, b, "/b", 5)

        original = aggregator.events.usage_since

        async def flaky(session, tenant_id, since):
            if tenant_id == a:
                raise RuntimeError("boom")
            return await original(session, tenant_id, since)

        monkeypatch.setattr(aggregator.events, "usage_since", flaky)
        report = await aggregator.analyze_all(now=NOW)

        assert report.tenants == 2
        assert report.analyzed == 1
        assert list(report.failures) == [a]
        assert await _statuses(db, a) == {}
        assert (await _statuses(db, b))[("GET", "/b")].status == "active"

    async def test_failed_tenant_keeps_previous_snapshot(self, db, aggregator, monkeypatch):
        a = await _create_tenant(db, "a")
        await _track(db, a, "/a", 2)
        await aggregator.analyze_all(now=NOW)

        async def broken(session, tenant_id, since):
            raise RuntimeError("boom")

        monkeypatch.setattr(aggregator.events, "usage_since", broken)
        report = await aggregator.analyze_all(now=NOW + timedelta(days=1))
        assert report.analyzed == 0
        assert set(await _statuses(db, a)) == {("GET", "/a")}
