"""API router for the v1 endpoints."""

from fastapi import APIRouter

from flowsync.api.v1.endpoints import sync

api_router = APIRouter()
api_router.include_router(sync.router, tags=["sync"])
