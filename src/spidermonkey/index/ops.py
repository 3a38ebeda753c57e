"""High-level orchestration of the indexing engine.

This module implements the IndexSynchronizer, the entry point for every
write to the index. It enforces the serialization invariants:

- cycle_lock: Only ONE build_full()/resync() at a time (prevents fingerprint
  snapshot corruption)
- guard.write(): The Tantivy publish and the line cache publish happen in one
  exclusive window, so a reader never pairs a generation with the wrong lines

The pipeline for a cycle is:
Discovery -> Fingerprints -> Diff -> Stage -> Commit -> Publish

Readers call snapshot() and work on the returned IndexSnapshot without
further locking.
"""

from __future__ import annotations

import hashlib
import os
import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from spidermonkey.config.constants import DEFAULT_EXCLUDE_PATTERNS
from spidermonkey.core.errors import IndexingError
from spidermonkey.index._internal.discovery import FileScanner
from spidermonkey.index._internal.indexing import LexicalIndex
from spidermonkey.index._internal.state import (
    ChecksumComputer,
    ConcurrencyGuard,
    LineCache,
    diff_fingerprints,
    split_lines,
)
from spidermonkey.index.models import (
    FingerprintSnapshot,
    IndexSnapshot,
    IndexState,
    IndexStats,
    TrackedFile,
)

if TYPE_CHECKING:
    from spidermonkey.config.models import SpiderMonkeyConfig

log = structlog.get_logger()


class IndexSynchronizer:
    """
    Keeps the text index and line cache in step with the scan directory.

    Invariants:
    - cycle_lock: Only ONE build_full()/resync() at a time
    - Every tracked path has exactly one cache entry and one index document
      per cached line, as of the published generation
    - A cycle with no changes commits nothing and keeps the generation

    Usage::

        sync = IndexSynchronizer(root, exclude_patterns=[".git"])
        sync.build_full()

        # periodically
        stats = sync.resync()

        # readers
        snapshot = sync.snapshot()
    """

    def __init__(
        self,
        root: Path | str,
        exclude_patterns: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
        *,
        hash_workers: int = 8,
        writer_heap_bytes: int = 50_000_000,
        writer_threads: int = 1,
    ) -> None:
        self.scanner = FileScanner(root, exclude_patterns)
        self.root = self.scanner.root
        self.checksums = ChecksumComputer(self.root, max_workers=hash_workers)
        self.lexical = LexicalIndex(heap_size=writer_heap_bytes, num_threads=writer_threads)
        self.lines = LineCache()
        self.guard = ConcurrencyGuard()

        self._fingerprints: FingerprintSnapshot = {}
        self._state = IndexState.EMPTY
        self._cycle_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: SpiderMonkeyConfig) -> IndexSynchronizer:
        return cls(
            config.scan.scan_directory,
            config.scan.exclude_patterns,
            hash_workers=config.indexer.hash_workers,
            writer_heap_bytes=config.indexer.writer_heap_bytes,
            writer_threads=config.indexer.writer_threads,
        )

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def generation(self) -> int:
        return self.lexical.generation

    @property
    def tracked_count(self) -> int:
        return len(self._fingerprints)

    @property
    def fingerprints(self) -> FingerprintSnapshot:
        """Copy of the recorded path -> fingerprint map."""
        return dict(self._fingerprints)

    def doc_count(self) -> int:
        with self.guard.read():
            return self.lexical.doc_count()

    # =========================================================================
    # Reads
    # =========================================================================

    def snapshot(self) -> IndexSnapshot:
        """Pin the published generation together with its line cache.

        Both are captured inside the shared section, so the pair is always
        one that a publish produced. The searcher and the mapping stay valid
        after later publishes.
        """
        with self.guard.read():
            return IndexSnapshot(
                generation=self.lexical.generation,
                searcher=self.lexical.searcher(),
                lines=self.lines.snapshot(),
            )

    # =========================================================================
    # Writes
    # =========================================================================

    def build_full(self) -> IndexStats:
        """
        Index every candidate file under the root.

        SERIALIZED: Acquires cycle_lock. Always commits exactly once, so the
        generation is 1 afterwards even for an empty tree.

        Raises:
            IndexingError: If the index is already built, or the commit fails.
        """
        with self._cycle_lock:
            if self._state is IndexState.READY:
                raise IndexingError.already_built()

            start_time = time.perf_counter()
            scan = self.scanner.scan()
            checks = self.checksums.compute(scan.paths)
            stats = IndexStats(
                files_processed=len(scan.paths),
                files_failed=len(checks.failed) + len(scan.failed_files),
            )

            recorded: FingerprintSnapshot = {}
            for path in sorted(checks.fingerprints):
                tracked = self._read_tracked(path)
                if tracked is None:
                    stats.files_failed += 1
                    continue
                self._stage(tracked)
                recorded[path] = tracked.fingerprint
                stats.files_added += 1
                stats.lines_indexed += len(tracked.lines)

            stats.generation = self._commit(recorded, force=True)
            self._state = IndexState.READY
            stats.duration_seconds = time.perf_counter() - start_time

        log.info(
            "full_build_complete",
            files=stats.files_added,
            failed=stats.files_failed,
            lines=stats.lines_indexed,
            generation=stats.generation,
            duration_s=round(stats.duration_seconds, 3),
        )
        return stats

    def resync(self) -> IndexStats:
        """
        Bring the index up to date with the directory.

        SERIALIZED: Acquires cycle_lock.

        Files that fail to hash, fail to stat during the scan, or sit under
        an unreadable directory keep their last fingerprint while they may
        still exist. Files that fail to read keep their previous index entries and
        fingerprint, so the next cycle retries them.

        Raises:
            IndexingError: If build_full() has not run, or the commit fails.
        """
        with self._cycle_lock:
            if self._state is not IndexState.READY:
                raise IndexingError.not_ready()

            start_time = time.perf_counter()
            scan = self.scanner.scan()
            checks = self.checksums.compute(scan.paths)
            previous = self._fingerprints

            current: FingerprintSnapshot = dict(checks.fingerprints)
            for path in previous.keys() - current.keys():
                unreadable = path in checks.failed or scan.is_unreadable(path)
                if unreadable and self._still_exists(path):
                    current[path] = previous[path]

            changes = diff_fingerprints(previous, current)
            stats = IndexStats(
                files_processed=len(scan.paths),
                files_failed=len(checks.failed) + len(scan.failed_files),
            )
            recorded = dict(current)

            for path in sorted(changes.added_or_modified):
                tracked = self._read_tracked(path)
                if tracked is None:
                    stats.files_failed += 1
                    if path in previous:
                        recorded[path] = previous[path]
                    else:
                        del recorded[path]
                    continue
                self._stage(tracked)
                recorded[path] = tracked.fingerprint
                if path in previous:
                    stats.files_updated += 1
                else:
                    stats.files_added += 1
                stats.lines_indexed += len(tracked.lines)

            for path in sorted(changes.removed):
                self.lexical.stage_remove(path)
                self.lines.stage_drop(path)
                stats.files_removed += 1

            if self.lexical.has_staged_changes():
                stats.generation = self._commit(recorded)
            else:
                self._fingerprints = recorded
                stats.generation = self.lexical.generation
            stats.duration_seconds = time.perf_counter() - start_time

        if stats.changed:
            log.info(
                "resync_complete",
                added=stats.files_added,
                updated=stats.files_updated,
                removed=stats.files_removed,
                failed=stats.files_failed,
                lines=stats.lines_indexed,
                generation=stats.generation,
                duration_s=round(stats.duration_seconds, 3),
            )
        else:
            log.debug("resync_noop", files=stats.files_processed, generation=stats.generation)
        return stats

    # =========================================================================
    # Helpers
    # =========================================================================

    def _still_exists(self, path: str) -> bool:
        """False only when the path is definitely gone; other stat errors count as present."""
        try:
            os.stat(self.root / path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError:
            return True
        return True

    def _read_tracked(self, path: str) -> TrackedFile | None:
        """Read a file once and derive both its lines and fingerprint from those bytes."""
        try:
            data = (self.root / path).read_bytes()
        except OSError as e:
            log.warning("file_read_failed", path=path, error=str(e))
            return None
        return TrackedFile(
            path=path,
            fingerprint=hashlib.sha256(data).hexdigest(),
            lines=split_lines(data),
        )

    def _stage(self, tracked: TrackedFile) -> None:
        self.lexical.stage_file(tracked.path, tracked.lines)
        self.lines.stage_put(tracked.path, tracked.lines)

    def _commit(self, recorded: FingerprintSnapshot, *, force: bool = False) -> int:
        """Commit staged index changes, then publish index and cache together.

        Must be called while holding cycle_lock.
        """
        try:
            self.lexical.commit_staged(force=force)
        except (OSError, ValueError) as e:
            self.lines.discard_staged()
            raise IndexingError.commit_failed(str(e)) from e

        with self.guard.write():
            generation = self.lexical.publish()
            self.lines.publish()
            self._fingerprints = recorded
        return generation


__all__ = ["IndexSynchronizer"]
