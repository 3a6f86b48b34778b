"""Rate limiters for API clients."""

from .airtable import AirtableRateLimiter
from .webflow import WebflowRateLimiter

__all__ = ["AirtableRateLimiter", "WebflowRateLimiter"]
