"""
Health check endpoint.

GET /health: MongoDB and Redis connectivity.
- MongoDB down → "unhealthy" (503): no token can be read or written.
- Redis down → "degraded" (200): flows are no longer joined across requests.
- Redis not configured → still "healthy"; the metrics stash is optional.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        await request.app.state.db.client.admin.command("ping")
        checks["mongodb"] = "ok"
    except Exception as e:
        log.error("health_mongodb_error", error=str(e), error_type=type(e).__name__)
        checks["mongodb"] = "error"
        overall = "unhealthy"

    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        checks["redis"] = "not_configured"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as e:
            log.warning("health_redis_error", error=str(e))
            checks["redis"] = "error"
            if overall == "healthy":
                overall = "degraded"

    body = HealthResponse(status=overall, checks=checks)
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
