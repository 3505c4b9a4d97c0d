"""Unit tests for the one-shot initialization latch."""

from __future__ import annotations

import threading
import time

import pytest

from core.errors import PhoneRegStoreError
from store.initialization import OneShotInitializer


def test_ensure_runs_setup_once() -> None:
    """Repeated calls should not rerun a completed setup."""
    calls: list[int] = []
    initializer = OneShotInitializer(lambda: calls.append(1))

    initializer.ensure()
    initializer.ensure()

    assert (len(calls), initializer.completed) == (1, True)


def test_ensure_retries_after_failed_setup() -> None:
    """A failed setup should be attempted again by the next caller."""
    attempts: list[int] = []

    def _setup() -> None:
        attempts.append(1)
        if len(attempts) == 1:
            raise PhoneRegStoreError("unreachable")

    initializer = OneShotInitializer(_setup)
    with pytest.raises(PhoneRegStoreError):
        initializer.ensure()

    initializer.ensure()

    assert (len(attempts), initializer.completed) == (2, True)


def test_ensure_serializes_concurrent_callers() -> None:
    """Concurrent first callers should share a single setup run."""
    calls: list[int] = []

    def _slow_setup() -> None:
        time.sleep(0.05)
        calls.append(1)

    initializer = OneShotInitializer(_slow_setup)
    threads = [threading.Thread(target=initializer.ensure) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
