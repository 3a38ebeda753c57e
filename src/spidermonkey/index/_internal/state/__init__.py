"""Change detection and shared in-memory state."""

from spidermonkey.index._internal.state.changes import diff_fingerprints
from spidermonkey.index._internal.state.checksums import (
    ChecksumComputer,
    ChecksumResult,
    fingerprint_file,
)
from spidermonkey.index._internal.state.guard import ConcurrencyGuard
from spidermonkey.index._internal.state.lines import LineCache, split_lines

__all__ = [
    "ChecksumComputer",
    "ChecksumResult",
    "ConcurrencyGuard",
    "LineCache",
    "diff_fingerprints",
    "fingerprint_file",
    "split_lines",
]
