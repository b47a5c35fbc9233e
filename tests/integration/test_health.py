"""Integration tests for GET /health."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from errors import register_error_handlers
from routes.health_routes import router as health_router
from storage import MemoryStorage


def _build_test_app(storage) -> FastAPI:
    """Minimal app with *storage* injected via lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.storage = storage
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health_router)
    return app


def _failing_storage(**ping_kwargs) -> MemoryStorage:
    storage = MemoryStorage()
    storage.ping = AsyncMock(**ping_kwargs)
    return storage


class TestHealthEndpoint:
    def test_healthy_with_memory_storage(self):
        with TestClient(_build_test_app(MemoryStorage())) as client:
            resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "checks": {"storage": "ok"}}

    def test_unhealthy_when_ping_raises(self):
        app = _build_test_app(_failing_storage(side_effect=Exception("disk gone")))
        with TestClient(app) as client:
            resp = client.get("/health")
        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "unhealthy"
        assert body["checks"]["storage"] == "error"

    def test_unhealthy_when_ping_false(self):
        app = _build_test_app(_failing_storage(return_value=False))
        with TestClient(app) as client:
            resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["checks"]["storage"] == "error"
