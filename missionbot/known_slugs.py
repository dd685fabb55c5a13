"""In-memory record of target slugs already seen this process."""

import threading
from typing import Iterable


class KnownSlugs:
    """Thread-safe set of slugs with an atomic test-and-insert.

    Entries live for the life of the process. Nothing is persisted.
    """

    def __init__(self, initial: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._slugs: set[str] = set(initial)

    def add_if_new(self, slug: str) -> bool:
        """Insert slug, returning True only if it was not already present."""
        with self._lock:
            if slug in self._slugs:
                return False
            self._slugs.add(slug)
            return True

    def discard(self, slug: str) -> None:
        """Forget slug so a later cycle treats it as new again."""
        with self._lock:
            self._slugs.discard(slug)

    def __contains__(self, slug: object) -> bool:
        with self._lock:
            return slug in self._slugs

    def __len__(self) -> int:
        with self._lock:
            return len(self._slugs)
