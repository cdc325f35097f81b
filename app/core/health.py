from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from sqlalchemy import text

from app.core.settings import settings
from app.db.session import engine
from app.utils.redis_client import get_redis_client

APP_VERSION = "0.1.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _probe(check: Callable[[], Awaitable[Any]]) -> dict[str, str]:
    # Only the exception type is reported; messages can carry connection strings.
    try:
        await check()
    except Exception as exc:
        return {"status": "error", "error": type(exc).__name__}
    return {"status": "ok"}


async def _select_one() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _check_db() -> dict[str, str]:
    return await _probe(_select_one)


async def _check_redis() -> dict[str, str]:
    return await _probe(lambda: get_redis_client().ping())


async def live_payload() -> dict[str, str]:
    return {"status": "ok", "version": APP_VERSION, "timestamp": _now()}


async def ready_payload() -> dict[str, Any]:
    checks = {"database": await _check_db(), "redis": await _check_redis()}
    ready = all(check["status"] == "ok" for check in checks.values())
    return {
        "status": "ok" if ready else "degraded",
        "ready": ready,
        "environment": settings.environment,
        "timestamp": _now(),
        "checks": checks,
    }
