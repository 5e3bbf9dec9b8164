"""
Health check endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
import redis.asyncio as redis

from config import settings
from database import engine

router = APIRouter()


async def _database_up() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


@router.get("/health")
async def health_check():
    """
    Overall health: the API process, the database and Redis.
    Redis only backs rate limiting, so its absence degrades but does not fail.
    """
    health_status = {
        "status": "healthy",
        "api": "up",
        "database": "unknown",
        "redis": "unknown",
    }

    health_status["database"] = "up" if await _database_up() else "down"
    if health_status["database"] != "up":
        health_status["status"] = "degraded"

    try:
        r = redis.from_url(settings.REDIS_URL)
        try:
            await r.ping()
        finally:
            await r.aclose()
        health_status["redis"] = "up"
    except Exception as e:
        health_status["redis"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    return health_status


@router.get("/health/ready")
async def readiness_check():
    """Ready once the database answers."""
    if not await _database_up():
        return JSONResponse(status_code=503, content={"ready": False, "missing": ["database"]})
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    return {"alive": True}
