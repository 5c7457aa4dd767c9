"""
Resilience layer for the WhatsApp knowledge assistant.

Caching, rate limiting and retry/circuit-breaker primitives shared by
the AI, vector search and messaging services.
"""

__version__ = "0.1.0"
