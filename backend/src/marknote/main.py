# Main application entry point
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import auth_router, health_router, notes_router, realtime_router
from .config import get_settings
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.redis_client import get_redis_client
from .database import create_tables, dispose_engine
from .realtime.hub import CollabHub

# Setup logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting MarkNote application",
        extra={"version": __version__, "environment": settings.environment, "debug": settings.debug},
    )

    redis_client = get_redis_client()
    try:
        await redis_client.connect()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Continuing without token blacklist...")

    # tests running on SQLite create their own schema
    if os.getenv("MARKNOTE_SKIP_LIFESPAN_DB") == "1":
        logger.info("Skipping DB table creation due to MARKNOTE_SKIP_LIFESPAN_DB=1")
    else:
        try:
            await create_tables()
            logger.info("Database tables created/verified")
        except Exception as e:
            logger.error("Failed to create database tables", exc_info=e)
            raise

    hub = CollabHub()
    hub.init()
    app.state.collab_hub = hub

    yield

    logger.info("Shutting down MarkNote application")
    await hub.shutdown()
    await redis_client.disconnect()
    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    description="Markdown notes with realtime co-editing",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api")
app.include_router(notes_router, prefix="/api")
app.include_router(realtime_router, prefix="/api")
app.include_router(health_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "MarkNote API"}


@app.get("/api/")
async def api_root():
    return {
        "message": "MarkNote API",
        "version": __version__,
        "documentation": {"swagger_ui": "/docs", "redoc": "/redoc", "openapi_json": "/openapi.json"},
        "endpoints": {
            "authentication": "/api/auth/",
            "notes": "/api/notes/",
            "realtime": "/api/realtime/ws",
            "health": "/api/health/",
        },
    }


# Bare liveness probe
@app.get("/health")
async def basic_health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("marknote.main:app", host=settings.host, port=settings.port, reload=settings.reload)
