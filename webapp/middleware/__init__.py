"""
Middleware components for the HTTP API.
"""

from middleware.rate_limit import RateLimitMiddleware

__all__ = ["RateLimitMiddleware"]
