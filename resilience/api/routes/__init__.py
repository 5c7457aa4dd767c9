"""
API routes package.
"""

from resilience.api.routes import admin

__all__ = ["admin"]
