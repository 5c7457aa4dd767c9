"""
In-memory caching for AI responses, search results and embeddings.
"""

from resilience.cache.manager import CacheManager
from resilience.cache.store import CacheStore

__all__ = ["CacheManager", "CacheStore"]
