"""One-shot initialization latch for registry stores.

Store setup is expensive and must run at most once per process, while
a failed attempt stays retryable by the next caller.
"""

from __future__ import annotations

import threading
from typing import Callable


class OneShotInitializer:
    """Run a setup callable once, serializing concurrent callers."""

    def __init__(self, setup: Callable[[], None]) -> None:
        self._setup = setup
        self._lock = threading.Lock()
        self._completed = False

    @property
    def completed(self) -> bool:
        """Return whether setup has finished successfully."""
        return self._completed

    def ensure(self) -> None:
        """Run setup unless it already completed.

        Callers arriving during an in-flight attempt block on the lock and
        observe its outcome; if it failed they retry setup themselves.
        """
        if self._completed:
            return
        with self._lock:
            if self._completed:
                return
            self._setup()
            self._completed = True
