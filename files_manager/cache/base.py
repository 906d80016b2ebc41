"""
Ephemeral key-value cache interface.

Backends store string values with a per-key TTL. Backend failures must raise
ServiceUnavailableError so callers never mistake an outage for a cache miss.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueCache(ABC):
    """TTL-bearing key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value, or None if the key is absent or expired."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key, returns True if it existed."""

    @abstractmethod
    def is_alive(self) -> bool:
        """Health check, never raises."""

    def close(self) -> None:
        """Release backend resources."""
