"""Response schemas of the HTTP entry point."""

from .sync import (
    HealthResponse,
    SyncErrorResponse,
    SyncIdleResponse,
    SyncSuccessResponse,
    UnauthorizedResponse,
)

__all__ = [
    "HealthResponse",
    "SyncErrorResponse",
    "SyncIdleResponse",
    "SyncSuccessResponse",
    "UnauthorizedResponse",
]
