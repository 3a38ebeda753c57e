"""Content fingerprints for change detection.

Each file is hashed with SHA-256 over its full content. Hashing is I/O bound,
so it fans out over a bounded thread pool.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from spidermonkey.config.constants import HASH_CHUNK_BYTES

log = structlog.get_logger()


def fingerprint_file(path: Path) -> str:
    """Hex SHA-256 of the file content. Raises OSError if unreadable."""
    hasher = hashlib.sha256()
    with path.open("rb") as f:
        while chunk := f.read(HASH_CHUNK_BYTES):
            hasher.update(chunk)
    return hasher.hexdigest()


@dataclass
class ChecksumResult:
    """Fingerprints of every file that could be read, plus the ones that couldn't."""

    fingerprints: dict[str, str] = field(default_factory=dict)
    failed: set[str] = field(default_factory=set)


class ChecksumComputer:
    """Computes path -> fingerprint maps concurrently."""

    def __init__(self, root: Path, max_workers: int = 8) -> None:
        self.root = root
        self.max_workers = max(1, max_workers)

    def _hash_one(self, rel_path: str) -> tuple[str, str | None]:
        try:
            return rel_path, fingerprint_file(self.root / rel_path)
        except OSError as e:
            log.debug("fingerprint_failed", path=rel_path, error=str(e))
            return rel_path, None

    def compute(self, paths: Iterable[str]) -> ChecksumResult:
        """Fingerprint every path.

        A file that fails to open or read is left out of ``fingerprints`` and
        listed in ``failed`` instead.
        """
        path_list = list(paths)
        result = ChecksumResult()
        if not path_list:
            return result

        workers = min(self.max_workers, len(path_list))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="spidermonkey-hash"
        ) as executor:
            for rel_path, digest in executor.map(self._hash_one, path_list):
                if digest is None:
                    result.failed.add(rel_path)
                else:
                    result.fingerprints[rel_path] = digest

        if result.failed:
            log.info("fingerprint_failures", count=len(result.failed))
        return result
