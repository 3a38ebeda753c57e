"""File discovery under the scan root.

Walks the tree once with ``os.walk``, pruning excluded directories in place,
and returns the POSIX-style relative paths of every regular file that no
exclusion pattern matches.
"""

from __future__ import annotations

import fnmatch
import os
import stat
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

log = structlog.get_logger()

_GLOB_CHARS = frozenset("*?[")


def _is_glob(pattern: str) -> bool:
    return any(c in _GLOB_CHARS for c in pattern)


def _matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support."""
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    return pattern.startswith("**/") and fnmatch.fnmatch(rel_path, pattern[3:])


@dataclass
class ScanResult:
    """Paths found by one walk, plus the files and directories that could not be read.

    A path under an unreadable directory, or one whose stat failed, may still
    exist; callers must not treat its absence from ``paths`` as a deletion.
    """

    paths: set[str] = field(default_factory=set)
    failed_files: set[str] = field(default_factory=set)
    failed_dirs: set[str] = field(default_factory=set)

    def is_unreadable(self, rel_path: str) -> bool:
        """True if ``rel_path`` was (or lies under a directory that was) unreadable."""
        if rel_path in self.failed_files:
            return True
        return any(d == "." or rel_path.startswith(f"{d}/") for d in self.failed_dirs)


class FileScanner:
    """Enumerates candidate files under a root, applying exclusion rules.

    A relative path is excluded when it contains any plain pattern as a
    substring (``.git`` excludes ``.git/HEAD`` and ``sub/.gitignore``), or
    matches any glob pattern (``*.min.js``). Directories, sockets, FIFOs and
    devices are never returned. Unreadable entries are reported in the
    ScanResult.
    """

    def __init__(self, root: Path | str, exclude_patterns: Iterable[str] = ()) -> None:
        self.root = Path(root).expanduser().resolve()
        patterns = [p for p in exclude_patterns if p]
        self._substrings = [p for p in patterns if not _is_glob(p)]
        self._globs = [p for p in patterns if _is_glob(p)]

    def is_excluded(self, rel_path: str) -> bool:
        if any(s in rel_path for s in self._substrings):
            return True
        return any(_matches_glob(rel_path, g) for g in self._globs)

    def _relative(self, path: str) -> str:
        try:
            return Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return "."

    def scan(self) -> ScanResult:
        """Walk the root and return the relative file paths to track.

        Entries that cannot be listed or stat'ed are reported in
        ``failed_files`` / ``failed_dirs`` rather than silently dropped.
        No ordering guarantee.
        """
        result = ScanResult()
        found = result.paths

        def on_error(err: OSError) -> None:
            rel_dir = self._relative(str(err.filename)) if err.filename else "."
            result.failed_dirs.add(rel_dir)
            log.warning("scan_directory_unreadable", path=rel_dir, error=str(err))

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=on_error):
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"

            # Prune in-place: excluded directories are never descended into
            dirnames[:] = [d for d in dirnames if not self.is_excluded(f"{prefix}{d}")]

            for filename in filenames:
                rel_path = f"{prefix}{filename}"
                if self.is_excluded(rel_path):
                    continue
                try:
                    mode = os.stat(os.path.join(dirpath, filename)).st_mode
                except FileNotFoundError:
                    # Dangling symlink, or deleted mid-walk
                    continue
                except OSError as e:
                    result.failed_files.add(rel_path)
                    log.warning("scan_entry_unreadable", path=rel_path, error=str(e))
                    continue
                if stat.S_ISREG(mode):
                    found.add(rel_path)

        log.debug(
            "scan_complete",
            root=str(self.root),
            files=len(found),
            failed=len(result.failed_files) + len(result.failed_dirs),
        )
        return result
