"""
Rate-limit state for the onboarding drip.

The drip only needs one operation to be atomic: claiming an address if no
one has claimed it yet. Stores implement the RateLimitStore protocol so a
durable, multi-instance backend can replace the in-memory one without
touching gateway logic.
"""

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class RateLimitStore(Protocol):
    """Set of keys that have already been served."""

    def claim(self, key: str) -> bool:
        """Add `key` if absent. Returns True only for the caller that added it."""
        ...

    def release(self, key: str) -> None:
        """Forget `key` so a later claim can succeed again."""
        ...

    def contains(self, key: str) -> bool:
        ...

    def __len__(self) -> int:
        ...


class InMemoryRateLimitStore:
    """
    Process-local store; contents are lost on restart.

    Keys are normalized to lowercase without a 0x prefix so every spelling
    of the same address collides.
    """

    def __init__(self) -> None:
        self._served: set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _normalize(key: str) -> str:
        return key.lower().removeprefix("0x")

    def claim(self, key: str) -> bool:
        normalized = self._normalize(key)
        with self._lock:
            if normalized in self._served:
                return False
            self._served.add(normalized)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._served.discard(self._normalize(key))

    def contains(self, key: str) -> bool:
        with self._lock:
            return self._normalize(key) in self._served

    def __len__(self) -> int:
        with self._lock:
            return len(self._served)
