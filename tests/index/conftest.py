"""Shared fixtures for index tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from spidermonkey.index.ops import IndexSynchronizer


@pytest.fixture
def scan_root(tmp_path: Path) -> Path:
    """Empty directory to index."""
    root = tmp_path / "tree"
    root.mkdir()
    return root


@pytest.fixture
def write_file(scan_root: Path) -> Callable[[str, str], Path]:
    """Write ``content`` to ``rel_path`` under the scan root, creating parents."""

    def _write(rel_path: str, content: str) -> Path:
        path = scan_root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def synchronizer(scan_root: Path) -> IndexSynchronizer:
    """Unbuilt synchronizer over the scan root with a small hash pool."""
    return IndexSynchronizer(scan_root, exclude_patterns=[".git"], hash_workers=2)
