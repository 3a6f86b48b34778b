"""Sync endpoint schemas."""

from typing import List

from pydantic import BaseModel, Field


class SyncSuccessResponse(BaseModel):
    """Batch completed; per-record failures are reported in the logs."""

    success: bool = Field(True, description="Always true for a completed batch")
    logs: List[str] = Field(default_factory=list, description="Run log lines, in order")


class SyncIdleResponse(BaseModel):
    """No record was pending."""

    message: str = Field(..., description="Human readable notice")
    logs: List[str] = Field(default_factory=list)


class SyncErrorResponse(BaseModel):
    """The run aborted before or while querying the batch."""

    error: str = Field(..., description="Description of the fatal error")
    logs: List[str] = Field(default_factory=list)


class UnauthorizedResponse(BaseModel):
    """Missing or wrong secret."""

    error: str = "Unauthorized"


class HealthResponse(BaseModel):
    """Liveness probe payload."""

    status: str = "ok"
