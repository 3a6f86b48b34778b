"""HTTP client wrappers."""

from .rate_limited_client import RateLimitedHttpClient

__all__ = ["RateLimitedHttpClient"]
