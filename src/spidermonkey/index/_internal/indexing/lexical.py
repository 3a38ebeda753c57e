"""Per-line full-text index via Tantivy.

Every physical line of a tracked file is one document::

    path  raw-tokenized text, stored   (exact key for delete-by-path)
    line  integer, stored               (1-based)
    body  default-tokenized text, stored

The index lives in RAM and is rebuilt on every start.

Writes are staged and land in two steps so the caller controls when readers
see them:

- ``commit_staged()`` applies staged deletes/adds on a writer and commits.
  The reader uses a manual reload policy, so nothing is visible yet.
- ``publish()`` reloads the reader. The next ``searcher()`` observes the new
  generation; searchers handed out earlier keep their old view.

Usage::

    index = LexicalIndex()
    index.stage_file("src/foo.py", ["import os", "print(os.sep)"])
    index.stage_remove("src/old.py")
    index.commit_staged()
    generation = index.publish()

    searcher = index.searcher()
    hits = index.search(searcher, index.parse("sep"), limit=100)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog
import tantivy

from spidermonkey.config.constants import SEARCH_FIELD
from spidermonkey.index.models import IndexedLine

log = structlog.get_logger()


class LexicalIndex:
    """
    Tantivy-backed store of line documents.

    Supports staged writes for generation atomicity:
    - stage_file() / stage_remove() buffer changes in memory
    - commit_staged() applies and commits them in a single writer batch
    - publish() makes the committed batch visible as the next generation
    - discard_staged() drops uncommitted changes
    """

    def __init__(self, *, heap_size: int = 50_000_000, num_threads: int = 1) -> None:
        self._heap_size = heap_size
        self._num_threads = num_threads

        schema_builder = tantivy.SchemaBuilder()
        # Raw tokenizer: the whole path is one term, used for delete-by-path
        schema_builder.add_text_field("path", stored=True, tokenizer_name="raw")
        schema_builder.add_integer_field("line", stored=True, indexed=False)
        schema_builder.add_text_field(SEARCH_FIELD, stored=True, tokenizer_name="default")
        self._schema = schema_builder.build()

        self._index = tantivy.Index(self._schema)
        self._index.config_reader(reload_policy="manual")

        self._generation = 0
        self._staged_removes: list[str] = []
        self._staged_adds: list[tuple[str, tuple[str, ...]]] = []
        self._uncommitted = False

    @property
    def generation(self) -> int:
        """Number of publishes so far. 0 means the empty initial index."""
        return self._generation

    # =========================================================================
    # Staged Operations
    # =========================================================================

    def stage_file(self, path: str, lines: Iterable[str]) -> None:
        """Stage replacing every document of ``path`` with one per line.

        Works for first-time adds too: deleting a path with no documents is
        a no-op in Tantivy.
        """
        self._staged_adds.append((path, tuple(lines)))

    def stage_remove(self, path: str) -> None:
        """Stage deleting every document of ``path``."""
        self._staged_removes.append(path)

    def has_staged_changes(self) -> bool:
        """Return True if there are uncommitted staged changes."""
        return bool(self._staged_adds or self._staged_removes)

    def commit_staged(self, *, force: bool = False) -> int:
        """
        Apply all staged changes in one writer batch and commit it.

        The commit is not visible to searchers until publish(). With
        ``force`` an empty batch is still committed, so the next publish
        advances the generation.

        Returns:
            Number of line documents added.
        """
        if not self.has_staged_changes() and not force:
            return 0

        writer = self._index.writer(heap_size=self._heap_size, num_threads=self._num_threads)
        added = 0
        try:
            for path in self._staged_removes:
                writer.delete_documents_by_term("path", path)

            for path, lines in self._staged_adds:
                writer.delete_documents_by_term("path", path)
                for number, body in enumerate(lines, start=1):
                    writer.add_document(self._make_document(IndexedLine(path, number, body)))
                    added += 1

            writer.commit()
        except (OSError, ValueError):
            # OSError: resource errors inside the writer
            # ValueError: tantivy rejected a document or the commit
            writer.rollback()
            self._staged_adds.clear()
            self._staged_removes.clear()
            raise

        self._staged_adds.clear()
        self._staged_removes.clear()
        self._uncommitted = True
        return added

    def discard_staged(self) -> int:
        """
        Discard all staged changes without committing.

        Returns:
            Number of staged changes discarded
        """
        count = len(self._staged_adds) + len(self._staged_removes)
        self._staged_adds.clear()
        self._staged_removes.clear()
        return count

    def publish(self) -> int:
        """Reload the reader so new searchers see the last commit.

        Returns:
            The generation now visible. Unchanged when nothing was committed
            since the previous publish.
        """
        if not self._uncommitted:
            return self._generation
        self._index.reload()
        self._uncommitted = False
        self._generation += 1
        return self._generation

    def _make_document(self, indexed: IndexedLine) -> Any:
        doc = tantivy.Document()
        doc.add_text("path", indexed.path)
        doc.add_integer("line", indexed.line)
        doc.add_text(SEARCH_FIELD, indexed.body)
        return doc

    # =========================================================================
    # Reads
    # =========================================================================

    def searcher(self) -> tantivy.Searcher:
        """Searcher pinned to the currently published generation."""
        return self._index.searcher()

    def parse(self, text: str) -> tantivy.Query:
        """Parse a free-text query scoped to the line body field.

        Raises:
            ValueError: On query syntax errors.
        """
        return self._index.parse_query(text, [SEARCH_FIELD])

    def search(
        self, searcher: tantivy.Searcher, query: tantivy.Query, limit: int
    ) -> list[IndexedLine]:
        """Run ``query`` on ``searcher`` and return up to ``limit`` matching lines."""
        hits = searcher.search(query, limit=max(limit, 1)).hits
        found: list[IndexedLine] = []
        for _score, doc_addr in hits:
            doc = searcher.doc(doc_addr)
            path = doc.get_first("path")
            line = doc.get_first("line")
            if path is None or line is None:
                log.warning("index_document_incomplete", path=path, line=line)
                continue
            body = doc.get_first(SEARCH_FIELD) or ""
            found.append(IndexedLine(path=path, line=int(line), body=body))
        return found

    def doc_count(self) -> int:
        """Return number of line documents in the published generation."""
        return int(self._index.searcher().num_docs)
