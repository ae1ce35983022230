"""
In-flight try-merge registry.

Guarantees at most one running attempt per pull request. The registry lives
in memory only and is owned by one orchestrator; after a restart it starts
empty, so a crashed attempt can never lock a PR out permanently.
"""

import threading
from typing import Dict, Optional


def job_key(repo_full_name: str, pr_number: int) -> str:
    """Registry key for a pull request, e.g. ``acme/widgets#42``."""
    return f"{repo_full_name}#{pr_number}"


class JobRegistry:
    """Concurrency-safe set of keys with an atomic check-and-insert."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: Dict[str, Optional[str]] = {}

    def try_acquire(self, key: str, owner: Optional[str] = None) -> bool:
        """
        Claim ``key``.

        Returns True when the caller now owns the slot, False (with no side
        effects) when someone else already holds it.
        """
        with self._lock:
            if key in self._slots:
                return False
            self._slots[key] = owner
            return True

    def release(self, key: str) -> None:
        """Free ``key``. Releasing a free key is a no-op."""
        with self._lock:
            self._slots.pop(key, None)

    def attach(self, key: str, owner: str) -> None:
        """Record which job occupies an already-acquired slot."""
        with self._lock:
            if key in self._slots:
                self._slots[key] = owner

    def owner_of(self, key: str) -> Optional[str]:
        with self._lock:
            return self._slots.get(key)

    def is_held(self, key: str) -> bool:
        with self._lock:
            return key in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)
