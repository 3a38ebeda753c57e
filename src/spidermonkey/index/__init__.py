"""Line-level full-text index over a directory tree.

Public API:
- IndexSynchronizer: builds and incrementally resyncs the index
- SearchCoordinator: runs queries and assembles snippets
"""

from spidermonkey.index.models import (
    ChangeSet,
    IndexSnapshot,
    IndexState,
    IndexStats,
    LineRange,
    SearchResponse,
    SearchResult,
    TrackedFile,
)
from spidermonkey.index.ops import IndexSynchronizer
from spidermonkey.index.search import SearchCoordinator, build_snippet

__all__ = [
    "ChangeSet",
    "IndexSnapshot",
    "IndexState",
    "IndexStats",
    "IndexSynchronizer",
    "LineRange",
    "SearchCoordinator",
    "SearchResponse",
    "SearchResult",
    "TrackedFile",
    "build_snippet",
]
