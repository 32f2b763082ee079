"""
Common response DTOs shared across multiple endpoints.

ErrorResponse    standard error shape from AppError.to_dict()
HealthResponse   GET /health
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error JSON body produced by the AppError exception handler.

    Error-specific fields (``tries``, ``ttl``, ``retryAfter``, ...) ride along
    as extras.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    code: int
    errno: int
    error: str
    message: str


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    checks: dict[str, str]
