"""
Common response DTOs shared across endpoints.

ErrorResponse   standard error shape from AppError.to_dict()
HealthResponse  GET /health
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    checks: dict[str, str]


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Malformed request or token encoding"},
    401: {"model": ErrorResponse, "description": "Unknown, revoked or expired token"},
    403: {"model": ErrorResponse, "description": "Token lacks the required permission"},
    404: {"model": ErrorResponse, "description": "Operation not available"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
}
