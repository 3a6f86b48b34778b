"""Airtable API rate limiter."""

from typing import Optional

from flowsync.core.config import settings

from ._base import BaseRateLimiter


class AirtableRateLimiter(BaseRateLimiter):
    """Per-process rate limiter for the Airtable Web API (5 requests/second per base)."""

    MAX_REQUESTS_PER_WINDOW = settings.AIRTABLE_REQUESTS_PER_SECOND
    RATE_LIMIT_WINDOW_SECONDS = 1.0
    MAX_WAIT_FOR_SLOT_SECONDS = 30.0

    _instance: Optional["AirtableRateLimiter"] = None
