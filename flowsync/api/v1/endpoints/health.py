"""Liveness probe."""

from fastapi import APIRouter

from flowsync import schemas

router = APIRouter()


@router.get("/health", response_model=schemas.HealthResponse)
async def health() -> schemas.HealthResponse:
    """Report that the process is up. Does not touch Airtable or Webflow."""
    return schemas.HealthResponse()
