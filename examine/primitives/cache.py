"""Per-invocation memo for named statistics."""
from __future__ import annotations

from typing import Any, Callable, Dict, TypeVar

T = TypeVar("T")


class StatsCache:
    """Memoises statistics by name for the lifetime of one engine call.

    Each request builds its own instance; nothing is shared across calls.
    None results are cached like any other value.
    """

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def get(self, name: str, compute: Callable[[], T]) -> T:
        if name not in self._values:
            self._values[name] = compute()
        return self._values[name]

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)
