"""
Cache statistics models.
"""

from typing import Dict

from pydantic import BaseModel, Field


def format_hit_rate(hits: int, misses: int) -> str:
    """
    Format hit rate as a percentage string.

    Args:
        hits: Number of hits
        misses: Number of misses

    Returns:
        "0%" when there were no lookups, otherwise e.g. "66.67%"
    """
    total = hits + misses
    if total == 0:
        return "0%"
    return f"{hits / total * 100:.2f}%"


class StoreStatistics(BaseModel):
    """Counters for a single cache store."""

    size: int = Field(..., ge=0, description="Current entry count")
    max_size: int = Field(..., ge=1, description="Configured bound")
    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    saves: int = Field(default=0, ge=0)
    evictions: int = Field(default=0, ge=0)
    expirations: int = Field(default=0, ge=0)

    @property
    def hit_rate(self) -> str:
        """Hit rate as a percentage string."""
        return format_hit_rate(self.hits, self.misses)


class CacheStatistics(BaseModel):
    """Aggregated statistics across every cache store."""

    hits: int = Field(default=0, ge=0, description="Total cache hits")
    misses: int = Field(default=0, ge=0, description="Total cache misses")
    saves: int = Field(default=0, ge=0, description="Total writes")
    evictions: int = Field(default=0, ge=0, description="Total LRU evictions")
    hit_rate: str = Field(default="0%", description="hits / (hits + misses)")
    size_per_type: Dict[str, int] = Field(
        default_factory=dict, description="Entry count per cache type"
    )
    stores: Dict[str, StoreStatistics] = Field(
        default_factory=dict, description="Per-store breakdown"
    )

    @classmethod
    def from_stores(cls, stores: Dict[str, StoreStatistics]) -> "CacheStatistics":
        """
        Aggregate per-store counters.

        Args:
            stores: Statistics keyed by cache type name

        Returns:
            CacheStatistics instance
        """
        hits = sum(s.hits for s in stores.values())
        misses = sum(s.misses for s in stores.values())
        return cls(
            hits=hits,
            misses=misses,
            saves=sum(s.saves for s in stores.values()),
            evictions=sum(s.evictions for s in stores.values()),
            hit_rate=format_hit_rate(hits, misses),
            size_per_type={name: s.size for name, s in stores.items()},
            stores=stores,
        )

    @property
    def total_requests(self) -> int:
        """Total number of lookups."""
        return self.hits + self.misses
