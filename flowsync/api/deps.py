"""Dependencies that are used in the API endpoints."""

import secrets
from typing import Optional

from fastapi import Request

from flowsync.core.config import Settings, settings


def get_settings() -> Settings:
    """Return the application settings (overridable in tests)."""
    return settings


def secret_matches(provided: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison of the caller's secret with the configured one.

    An unset ``SYNC_SECRET`` never matches, so the endpoint stays closed until
    it is configured.
    """
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def get_public_base_url(request: Request) -> str:
    """Public base URL of this service, as seen by Webflow.

    Uses ``x-forwarded-proto`` (default ``https``) and the ``host`` header set
    by the hosting proxy.
    """
    proto = request.headers.get("x-forwarded-proto", "https").split(",")[0].strip()
    host = request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"
