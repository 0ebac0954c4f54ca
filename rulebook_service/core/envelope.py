"""
Uniform response envelope shared by every endpoint.

Success: {"status": int, "message": str, "count": int, "values": [...]}
Error:   {"status": int, "message": str}
"""

from __future__ import annotations

from typing import Any, Iterable

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class SuccessEnvelope(BaseModel):
    """Envelope returned when an operation succeeds."""

    status: int = status.HTTP_200_OK
    message: str
    count: int = 0
    values: list[Any] = Field(default_factory=list)


class ErrorEnvelope(BaseModel):
    """Envelope returned when an operation fails."""

    status: int
    message: str


def success(message: str, values: Iterable[Any] = ()) -> JSONResponse:
    """Build a 200 response; count always equals the number of values."""
    items = list(values)
    body = SuccessEnvelope(message=message, count=len(items), values=items)
    return JSONResponse(status_code=body.status, content=body.model_dump())


def error(status_code: int, message: str) -> JSONResponse:
    """Build an error response carrying only status and message."""
    body = ErrorEnvelope(status=status_code, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())
