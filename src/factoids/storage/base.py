"""Durable map interface."""

from typing import Any, Protocol


class DurableMap(Protocol):
    """Append-only keyed storage.

    Every ``set`` writes a full new value for the key; earlier values are
    never patched in place.
    """

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the latest value for key, or None if never written."""
        ...

    def set(self, key: str, value: dict[str, Any]) -> None:
        """Write a new value for key."""
        ...
