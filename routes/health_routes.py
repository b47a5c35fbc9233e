"""
Health check endpoint.

GET /health: pings the storage backend.
- Storage failure → "unhealthy" (503); the service cannot function without it.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        storage = request.app.state.storage
        checks["storage"] = "ok" if await storage.ping() else "error"
    except Exception:
        checks["storage"] = "error"
    if checks["storage"] != "ok":
        overall = "unhealthy"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
