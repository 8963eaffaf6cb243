"""Error envelope, notifications and health endpoint tests."""

import json
import logging

import pytest
from httpx import AsyncClient
from sqlalchemy.orm.exc import StaleDataError
from starlette.requests import Request

from app.config import settings
from app.middleware.exceptions import (
    BusinessLogicError,
    ConcurrencyConflictError,
    ResourceNotFoundError,
    create_error_response,
    stale_data_exception_handler,
)
from app.services import notifications
from app.utils import cache


def _request(path: str = "/api/harvest/daily") -> Request:
    return Request({"type": "http", "method": "POST", "path": path, "headers": [], "query_string": b""})


@pytest.mark.unit
class TestErrorEnvelope:

    def test_details_are_optional(self):
        resp = create_error_response(422, "Nope", "SOME_CODE")
        assert json.loads(resp.body) == {"error": {"code": "SOME_CODE", "message": "Nope"}}

    def test_details_included(self):
        resp = create_error_response(422, "Nope", "SOME_CODE", details={"remaining_boxes": 4})
        assert json.loads(resp.body)["error"]["details"] == {"remaining_boxes": 4}

    def test_exception_defaults(self):
        assert BusinessLogicError("x").status_code == 422
        missing = ResourceNotFoundError("Batch", "b-1")
        assert missing.status_code == 404
        assert missing.message == "Batch not found: b-1"
        conflict = ConcurrencyConflictError()
        assert conflict.status_code == 409
        assert conflict.details == {"retryable": True}


@pytest.mark.unit
@pytest.mark.asyncio
class TestStaleData:

    async def test_stale_write_maps_to_conflict(self):
        resp = await stale_data_exception_handler(_request(), StaleDataError("version mismatch"))
        assert resp.status_code == 409
        body = json.loads(resp.body)
        assert body["error"]["code"] == "CONCURRENT_UPDATE"
        assert body["error"]["details"]["retryable"] is True


class _FakeRedis:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.pushed: list[tuple[str, str]] = []

    async def rpush(self, key, value):
        if self.fail:
            raise ConnectionError("redis down")
        self.pushed.append((key, value))


@pytest.mark.unit
@pytest.mark.asyncio
class TestPublish:

    async def test_disabled_drops_event(self, monkeypatch):
        monkeypatch.setattr(settings, "notifications_enabled", False)
        assert await notifications.publish("gate_pass.created", {"gate_pass_id": "g"}) is False

    async def test_event_is_queued(self, monkeypatch):
        fake = _FakeRedis()
        monkeypatch.setattr(settings, "notifications_enabled", True)

        async def _get_redis():
            return fake

        monkeypatch.setattr(notifications, "get_redis", _get_redis)

        assert await notifications.publish("inspection.approved", {"batch_code": "BATCH-1"}) is True
        channel, raw = fake.pushed[0]
        assert channel == settings.notification_channel
        message = json.loads(raw)
        assert message["event"] == "inspection.approved"
        assert message["payload"] == {"batch_code": "BATCH-1"}

    async def test_failure_is_logged_not_raised(self, monkeypatch, caplog):
        monkeypatch.setattr(settings, "notifications_enabled", True)

        async def _get_redis():
            return _FakeRedis(fail=True)

        monkeypatch.setattr(notifications, "get_redis", _get_redis)

        with caplog.at_level(logging.ERROR, logger="bananatrack.notifications"):
            assert await notifications.publish("gate_pass.received", {}) is False
        assert "Failed to publish notification gate_pass.received" in caplog.text


@pytest.mark.api
@pytest.mark.asyncio
class TestHealth:

    async def test_liveness(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class _Session:
    def __init__(self):
        self.info = {}


@pytest.mark.asyncio
class TestCacheInvalidation:

    @pytest.fixture
    def invalidated(self, monkeypatch) -> list[str]:
        patterns: list[str] = []

        async def _record(pattern: str):
            patterns.append(pattern)

        monkeypatch.setattr(cache, "invalidate_cache", _record)
        return patterns

    @pytest.mark.unit
    async def test_pattern_cleared_again_after_commit(self, invalidated):
        session = _Session()

        await cache.invalidate_on_commit(session, "costs:*")
        await cache.invalidate_on_commit(session, "costs:*")
        assert invalidated == ["costs:*", "costs:*"]

        await cache.run_pending_invalidations(session)
        assert invalidated == ["costs:*", "costs:*", "costs:*"]

        await cache.run_pending_invalidations(session)
        assert len(invalidated) == 3

    @pytest.mark.api
    async def test_harvest_report_clears_costs_after_commit(
        self, client: AsyncClient, make_batch, harvest, invalidated
    ):
        batch = await make_batch(100)
        invalidated.clear()

        resp = await harvest(batch["id"], 40)
        assert resp.status_code == 201
        assert invalidated == ["costs:*", "costs:*"]

    @pytest.mark.api
    async def test_rejected_report_clears_nothing(
        self, client: AsyncClient, make_batch, harvest, invalidated
    ):
        batch = await make_batch(10)
        invalidated.clear()

        resp = await harvest(batch["id"], 11)
        assert resp.status_code == 422
        assert invalidated == []
