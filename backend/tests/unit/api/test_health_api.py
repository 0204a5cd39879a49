"""Health endpoints (marknote/api/health.py and /health)."""

from fastapi.testclient import TestClient

from marknote.core.services.health_service import HealthService
from marknote.main import app


def test_basic_health():
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_health_reports_components(monkeypatch):
    async def fake_db(self):
        return {"connected": True, "status": "healthy", "response_time_ms": 1.0}

    async def fake_redis(self):
        return {"connected": False, "status": "unhealthy", "response_time_ms": None}

    monkeypatch.setattr(HealthService, "check_database_health", fake_db, raising=True)
    monkeypatch.setattr(HealthService, "check_redis_health", fake_redis, raising=True)

    with TestClient(app) as client:
        resp = client.get("/api/health/")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "degraded"
    assert body["checks"]["realtime"]["status"] == "healthy"
    assert body["checks"]["realtime"]["connections"] == 0
