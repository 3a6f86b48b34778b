"""FastAPI application.

Run locally with ``uvicorn flowsync.main:app --reload``.
"""

from fastapi import FastAPI

from flowsync.api.v1.api import api_router
from flowsync.api.v1.endpoints import health

app = FastAPI(title="flowsync", description="Airtable to Webflow product sync")

app.include_router(api_router, prefix="/api")
app.include_router(health.router, tags=["health"])
