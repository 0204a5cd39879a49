"""Health service implementation."""

import asyncio
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ... import __version__
from ...config import get_settings
from ...realtime.hub import CollabHub
from ..redis_client import get_redis_client
from ..schemas.common import HealthCheckResponse
from .interfaces import IHealthService


class HealthService(IHealthService):
    """Health check service implementation."""

    def __init__(self, session: AsyncSession, hub: Optional[CollabHub] = None):
        self.session = session
        self.hub = hub
        self.settings = get_settings()

    async def get_health_status(self) -> HealthCheckResponse:
        """Database and realtime hub decide the status; Redis only degrades it."""
        db_health = await self.check_database_health()
        redis_health = await self.check_redis_health()
        realtime_health = self.check_realtime_health()

        overall_status = "healthy"
        if not redis_health["connected"]:
            overall_status = "degraded"
        if not db_health["connected"] or realtime_health["status"] != "healthy":
            overall_status = "unhealthy"

        return HealthCheckResponse(
            status=overall_status,
            version=__version__,
            checks={"database": db_health, "redis": redis_health, "realtime": realtime_health},
        )

    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        try:
            loop = asyncio.get_running_loop()
            start_time = loop.time()
            result = await self.session.execute(text("SELECT 1"))
            result.scalar()
            response_time = (loop.time() - start_time) * 1000

            return {
                "connected": True,
                "status": "healthy",
                "response_time_ms": round(response_time, 2),
            }
        except Exception as e:
            return {
                "connected": False,
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": 0.0,
            }

    async def check_redis_health(self) -> Dict[str, Any]:
        """Ping the shared Redis client."""
        redis_client = get_redis_client()
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        if not await redis_client.ping():
            return {"connected": False, "status": "unhealthy", "response_time_ms": None}
        return {
            "connected": True,
            "status": "healthy",
            "response_time_ms": round((loop.time() - start_time) * 1000, 2),
        }

    def check_realtime_health(self) -> Dict[str, Any]:
        if self.hub is None:
            return {"status": "unhealthy", "error": "Collaboration hub not initialized"}
        stats = self.hub.stats()
        return {"status": "healthy" if stats["running"] else "unhealthy", **stats}
