"""Query execution and snippet assembly.

A search pins one IndexSnapshot, runs the query against its searcher, and
builds every snippet from the line cache of that same snapshot. Results are
ordered by (path, line); scoring is not exposed.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from spidermonkey.config.constants import CONTEXT_LINES, SEARCH_RESULT_CAP
from spidermonkey.index.models import LineRange, SearchResponse, SearchResult

if TYPE_CHECKING:
    from spidermonkey.index.ops import IndexSynchronizer

log = structlog.get_logger()


def build_snippet(
    lines: Sequence[str], line: int, context: int = CONTEXT_LINES
) -> tuple[str, LineRange] | None:
    """Return the window around 1-based ``line`` and its inclusive range.

    The window is clamped to the file. Returns None when ``line`` is outside
    the file.
    """
    total = len(lines)
    if line < 1 or line > total:
        return None
    start = max(line - context, 1)
    end = min(line + context, total)
    return "\n".join(lines[start - 1 : end]), LineRange(start=start, end=end)


class SearchCoordinator:
    """Runs free-text queries against the synchronizer's published state."""

    def __init__(
        self,
        synchronizer: IndexSynchronizer,
        *,
        max_results: int = SEARCH_RESULT_CAP,
        context_lines: int = CONTEXT_LINES,
    ) -> None:
        self._sync = synchronizer
        self.max_results = max_results
        self.context_lines = context_lines

    def search(self, text: str) -> SearchResponse:
        """
        Search line bodies for ``text``.

        Query syntax is the Tantivy query language; bare terms are OR-ed.
        Empty and unparsable queries produce an empty result list, never an
        error.

        Returns:
            SearchResponse with results sorted by (path, line) and elapsed
            seconds.
        """
        start_time = time.perf_counter()
        response = SearchResponse()

        if not text.strip():
            response.time = time.perf_counter() - start_time
            return response

        lexical = self._sync.lexical
        try:
            query = lexical.parse(text)
        except ValueError as e:
            log.debug("query_parse_failed", query=text, error=str(e))
            response.time = time.perf_counter() - start_time
            return response

        snapshot = self._sync.snapshot()
        try:
            hits = lexical.search(snapshot.searcher, query, self.max_results)
        except ValueError as e:
            log.warning("query_failed", query=text, error=str(e))
            hits = []

        for hit in hits:
            file_lines = snapshot.lines.get(hit.path)
            if file_lines is None:
                # Index and cache are published together; a miss is a bug
                log.warning("cache_miss", path=hit.path, generation=snapshot.generation)
                continue
            window = build_snippet(file_lines, hit.line, self.context_lines)
            if window is None:
                log.warning(
                    "line_out_of_range",
                    path=hit.path,
                    line=hit.line,
                    generation=snapshot.generation,
                )
                continue
            body, line_range = window
            response.results.append(
                SearchResult(body=body, path=hit.path, line=hit.line, line_range=line_range)
            )

        response.results.sort(key=lambda r: (r.path, r.line))
        response.time = time.perf_counter() - start_time
        log.debug(
            "search_complete",
            query=text,
            results=len(response.results),
            generation=snapshot.generation,
        )
        return response


__all__ = ["SearchCoordinator", "build_snippet"]
