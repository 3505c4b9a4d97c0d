"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src and project root to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    for import_root in (project_root / "src", project_root):
        if str(import_root) not in sys.path:
            sys.path.insert(0, str(import_root))


@pytest.fixture
def local_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Local-backend config rooted in a per-test temporary directory."""
    from core.config import PhoneRegConfig

    monkeypatch.delenv("PHONEREG_BACKEND", raising=False)
    monkeypatch.delenv("PHONEREG_FILE_STORE", raising=False)
    config = PhoneRegConfig.from_env()
    return replace(
        config,
        backend="local",
        file_store="local",
        data_root=tmp_path / "registry",
        input_root=tmp_path / "inbox",
        init_retry_delay_seconds=0.0,
    )


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Drop logger configuration bound to a per-test capture stream."""
    import structlog

    yield
    structlog.reset_defaults()
