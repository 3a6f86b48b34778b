"""Webflow Data API rate limiter."""

from typing import Optional

from flowsync.core.config import settings

from ._base import BaseRateLimiter


class WebflowRateLimiter(BaseRateLimiter):
    """Per-process rate limiter for the Webflow Data API.

    Webflow enforces a per-site limit (60 RPM on CMS plans). Schema patches and
    item writes draw from the same budget.
    """

    MAX_REQUESTS_PER_WINDOW = settings.WEBFLOW_REQUESTS_PER_MINUTE
    RATE_LIMIT_WINDOW_SECONDS = 60.0

    _instance: Optional["WebflowRateLimiter"] = None
