"""In-memory line cache: the exact lines last indexed for each tracked file.

The cache is copy-on-write. Readers hold on to the mapping returned by
``snapshot()`` for as long as they need it; a writer stages puts and drops
and ``publish()`` swaps in a fresh mapping in one assignment. A published
mapping is never mutated afterwards.

Usage::

    cache = LineCache()
    cache.stage_put("a.txt", ("one", "two"))
    cache.stage_drop("gone.txt")
    cache.publish()

    lines = cache.snapshot().get("a.txt")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType


def split_lines(data: bytes) -> tuple[str, ...]:
    """Split raw file bytes into lines without terminators.

    Decodes as UTF-8 with replacement so invalid bytes never shift line
    numbers. Splits on ``\\n`` only, strips one trailing ``\\r`` per line,
    and a trailing newline does not create an extra empty line.
    """
    if not data:
        return ()
    text = data.decode("utf-8", errors="replace")
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return tuple(p[:-1] if p.endswith("\r") else p for p in parts)


class LineCache:
    """path -> ordered lines, published atomically."""

    def __init__(self) -> None:
        self._current: Mapping[str, tuple[str, ...]] = MappingProxyType({})
        self._staged: dict[str, tuple[str, ...] | None] = {}

    # =========================================================================
    # Reads
    # =========================================================================

    def snapshot(self) -> Mapping[str, tuple[str, ...]]:
        """Return the currently published, read-only mapping."""
        return self._current

    # =========================================================================
    # Staged writes
    # =========================================================================

    def stage_put(self, path: str, lines: Iterable[str]) -> None:
        """Stage replacing (or adding) the entry for ``path``."""
        self._staged[path] = tuple(lines)

    def stage_drop(self, path: str) -> None:
        """Stage removing the entry for ``path``. Dropping an absent path is a no-op."""
        self._staged[path] = None

    def has_staged_changes(self) -> bool:
        return bool(self._staged)

    def publish(self) -> int:
        """Swap in a new mapping with all staged changes applied.

        Returns:
            Number of staged changes applied.
        """
        if not self._staged:
            return 0

        updated = dict(self._current)
        for path, lines in self._staged.items():
            if lines is None:
                updated.pop(path, None)
            else:
                updated[path] = lines
        count = len(self._staged)
        self._staged = {}
        self._current = MappingProxyType(updated)
        return count

    def discard_staged(self) -> int:
        count = len(self._staged)
        self._staged = {}
        return count
