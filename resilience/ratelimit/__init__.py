"""
Fixed-window rate limiting for inbound WhatsApp traffic.
"""

from resilience.ratelimit.limiter import RateLimiter

__all__ = ["RateLimiter"]
