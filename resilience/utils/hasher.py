"""
Cache key generation utilities.

Sandi Metz Principles:
- Single Responsibility: Hash generation
- Small functions: Each does one thing
- Pure functions: No side effects
"""

import hashlib
import json


def normalize_query(query: str) -> str:
    """
    Normalize query for comparison.

    Args:
        query: Query text

    Returns:
        Normalized query (lowercase, trimmed)
    """
    return query.strip().lower()


def generate_key(kind: str, *parts: object) -> str:
    """
    Generate a fixed-length cache key from its parts.

    Args:
        kind: Key prefix (response, search, embedding)
        *parts: Values hashed together, encoded as a JSON array so part
            boundaries are unambiguous

    Returns:
        Cache key (kind:md5hash)
    """
    key_string = json.dumps([str(part) for part in parts])
    hash_value = hashlib.md5(key_string.encode()).hexdigest()
    return f"{kind}:{hash_value}"


def generate_response_key(business_id: str, query: str) -> str:
    """
    Generate key for a cached AI response.

    Args:
        business_id: Business the query was asked against
        query: Raw customer query

    Returns:
        Cache key
    """
    return generate_key("response", business_id, normalize_query(query))


def generate_search_key(business_id: str, query: str) -> str:
    """
    Generate key for cached vector search results.

    Args:
        business_id: Business the search is scoped to
        query: Raw search query

    Returns:
        Cache key
    """
    return generate_key("search", business_id, normalize_query(query))


def generate_embedding_key(text: str) -> str:
    """
    Generate key for a cached embedding.

    Embeddings are content-addressed, so the raw text is hashed as-is.

    Args:
        text: Embedded text

    Returns:
        Cache key
    """
    return generate_key("embedding", text)
