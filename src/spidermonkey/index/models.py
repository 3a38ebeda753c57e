"""Index data model.

Plain dataclasses shared by the synchronizer, the search coordinator and the
HTTP layer. Nothing here touches Tantivy or the filesystem.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import tantivy

FingerprintSnapshot = dict[str, str]
"""path -> hex content digest, one entry per readable file at scan time."""


class IndexState(Enum):
    """Synchronizer lifecycle state."""

    EMPTY = "empty"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class TrackedFile:
    """A file as it was last indexed."""

    path: str
    fingerprint: str
    lines: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class IndexedLine:
    """One line document in the text index."""

    path: str
    line: int  # 1-based
    body: str


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """Classification of paths between two fingerprint snapshots."""

    added_or_modified: frozenset[str] = frozenset()
    removed: frozenset[str] = frozenset()
    unchanged: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class LineRange:
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A matched line with its surrounding snippet."""

    body: str
    path: str
    line: int
    line_range: LineRange

    def to_dict(self) -> dict[str, Any]:
        return {
            "body": self.body,
            "path": self.path,
            "line": self.line,
            "line_range": {"start": self.line_range.start, "end": self.line_range.end},
        }


@dataclass
class SearchResponse:
    """Results of one query plus elapsed wall-clock seconds."""

    results: list[SearchResult] = field(default_factory=list)
    time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"results": [r.to_dict() for r in self.results], "time": self.time}


@dataclass
class IndexStats:
    """Statistics from a full build or a resync cycle."""

    files_processed: int = 0
    files_added: int = 0
    files_updated: int = 0
    files_removed: int = 0
    files_failed: int = 0
    lines_indexed: int = 0
    generation: int = 0
    duration_seconds: float = 0.0

    @property
    def changed(self) -> bool:
        return bool(self.files_added or self.files_updated or self.files_removed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_processed": self.files_processed,
            "files_added": self.files_added,
            "files_updated": self.files_updated,
            "files_removed": self.files_removed,
            "files_failed": self.files_failed,
            "lines_indexed": self.lines_indexed,
            "generation": self.generation,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    """One committed index generation paired with the line cache that matches it."""

    generation: int
    searcher: tantivy.Searcher
    lines: Mapping[str, tuple[str, ...]]
