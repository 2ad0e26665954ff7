"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from stackplan.backends.inprocess import InProcessBackend
from stackplan.observability import StructuredLogger


@pytest.fixture
def inprocess_backend() -> InProcessBackend:
    """Provide an in-process backend for tests that call create_image()."""
    return InProcessBackend()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[Mapping[str, str]], Path]:
    """Write a source tree from ``{relative path: content}`` and return its root."""

    def _make(files: Mapping[str, str]) -> Path:
        root = tmp_path / "app"
        root.mkdir(exist_ok=True)
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make
