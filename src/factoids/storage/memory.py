"""In-memory durable map."""

import copy
from typing import Any


class InMemoryMap:
    """Dict-backed map that keeps every revision in an append-only log."""

    def __init__(self) -> None:
        self._latest: dict[str, dict[str, Any]] = {}
        self._log: list[tuple[str, dict[str, Any]]] = []

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._latest.get(key)
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        stored = copy.deepcopy(value)
        self._log.append((key, stored))
        self._latest[key] = stored

    def keys(self) -> list[str]:
        """Keys whose latest value has a message."""
        return [key for key, value in self._latest.items() if value.get("message")]

    def history(self, key: str) -> list[dict[str, Any]]:
        """All values written for key, oldest first."""
        return [copy.deepcopy(value) for k, value in self._log if k == key]
