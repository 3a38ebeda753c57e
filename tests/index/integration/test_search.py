"""Integration tests for SearchCoordinator over a real synchronized tree.

Covers:
- Snippet windows and their clamping at file edges
- Result ordering and the result cap
- Empty and malformed queries
- Search after resync (modify / delete)
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from spidermonkey.index.models import LineRange
from spidermonkey.index.ops import IndexSynchronizer
from spidermonkey.index.search import SearchCoordinator, build_snippet

WriteFile = Callable[[str, str], Path]

FIVE_LINES = "first\nsecond\nneedle\nfourth\nfifth\n"


@pytest.fixture
def coordinator(synchronizer: IndexSynchronizer) -> SearchCoordinator:
    return SearchCoordinator(synchronizer)


class TestBuildSnippet:
    """Window arithmetic on a cached line list."""

    LINES = tuple(f"line {n}" for n in range(1, 21))

    def test_middle_of_file_has_full_window(self) -> None:
        window = build_snippet(self.LINES, 10)
        assert window is not None
        body, line_range = window
        assert line_range == LineRange(start=7, end=13)
        assert body.split("\n") == [f"line {n}" for n in range(7, 14)]

    def test_first_line_clamps_start(self) -> None:
        window = build_snippet(self.LINES, 1)
        assert window is not None
        assert window[1] == LineRange(start=1, end=4)

    def test_last_line_clamps_end(self) -> None:
        window = build_snippet(self.LINES, 20)
        assert window is not None
        assert window[1] == LineRange(start=17, end=20)

    def test_short_file_window_is_whole_file(self) -> None:
        window = build_snippet(("only",), 1)
        assert window == ("only", LineRange(start=1, end=1))

    @pytest.mark.parametrize("line", [0, 21, -3])
    def test_out_of_range_line_returns_none(self, line: int) -> None:
        assert build_snippet(self.LINES, line) is None

    def test_custom_context(self) -> None:
        window = build_snippet(self.LINES, 10, context=0)
        assert window == ("line 10", LineRange(start=10, end=10))


class TestSearchCoordinator:
    """End-to-end query execution."""

    def test_small_file_example(
        self,
        synchronizer: IndexSynchronizer,
        coordinator: SearchCoordinator,
        write_file: WriteFile,
    ) -> None:
        # Given
        path = write_file("a.txt", FIVE_LINES)
        synchronizer.build_full()

        # When
        response = coordinator.search("needle")

        # Then
        assert len(response.results) == 1
        result = response.results[0]
        assert result.path == "a.txt"
        assert result.line == 3
        assert result.line_range == LineRange(start=1, end=5)
        assert result.body == "first\nsecond\nneedle\nfourth\nfifth"
        assert response.time >= 0.0

        # When - file deleted and resynced
        path.unlink()
        synchronizer.resync()

        # Then
        assert coordinator.search("needle").results == []

    def test_results_sorted_by_path_then_line(
        self,
        synchronizer: IndexSynchronizer,
        coordinator: SearchCoordinator,
        write_file: WriteFile,
    ) -> None:
        write_file("b.txt", "hit\nmiss\nhit\n")
        write_file("a.txt", "miss\nhit\n")
        synchronizer.build_full()

        response = coordinator.search("hit")

        assert [(r.path, r.line) for r in response.results] == [
            ("a.txt", 2),
            ("b.txt", 1),
            ("b.txt", 3),
        ]

    def test_boundary_ranges_stay_inside_file(
        self,
        synchronizer: IndexSynchronizer,
        coordinator: SearchCoordinator,
        write_file: WriteFile,
    ) -> None:
        lines = [f"filler {n}" for n in range(1, 11)]
        lines[0] = "edge start"
        lines[-1] = "edge end"
        write_file("long.txt", "\n".join(lines) + "\n")
        synchronizer.build_full()

        results = {r.line: r for r in coordinator.search("edge").results}

        assert results[1].line_range == LineRange(start=1, end=4)
        assert results[10].line_range == LineRange(start=7, end=10)

    def test_empty_query_returns_empty(self, coordinator: SearchCoordinator) -> None:
        response = coordinator.search("")
        assert response.results == []
        assert response.time >= 0.0

    def test_whitespace_query_returns_empty(self, coordinator: SearchCoordinator) -> None:
        assert coordinator.search("   ").results == []

    def test_malformed_query_returns_empty(
        self,
        synchronizer: IndexSynchronizer,
        coordinator: SearchCoordinator,
        write_file: WriteFile,
    ) -> None:
        write_file("a.txt", "value\n")
        synchronizer.build_full()

        response = coordinator.search("nosuchfield:value")

        assert response.results == []

    def test_result_cap_applies(
        self, synchronizer: IndexSynchronizer, write_file: WriteFile
    ) -> None:
        write_file("many.txt", "match\n" * 50)
        synchronizer.build_full()

        response = SearchCoordinator(synchronizer, max_results=7).search("match")

        assert len(response.results) == 7

    def test_modified_file_snippet_reflects_new_content(
        self,
        synchronizer: IndexSynchronizer,
        coordinator: SearchCoordinator,
        write_file: WriteFile,
    ) -> None:
        write_file("a.txt", "before\ntarget\n")
        synchronizer.build_full()

        write_file("a.txt", "after\nchanged\ntarget\n")
        synchronizer.resync()

        [result] = coordinator.search("target").results
        assert result.line == 3
        assert result.body == "after\nchanged\ntarget"

    def test_to_dict_shape(
        self,
        synchronizer: IndexSynchronizer,
        coordinator: SearchCoordinator,
        write_file: WriteFile,
    ) -> None:
        write_file("a.txt", "needle\n")
        synchronizer.build_full()

        data = coordinator.search("needle").to_dict()

        assert set(data) == {"results", "time"}
        assert data["results"] == [
            {
                "body": "needle",
                "path": "a.txt",
                "line": 1,
                "line_range": {"start": 1, "end": 1},
            }
        ]
