"""Unit tests for Lexical Index (lexical.py).

Tests cover:
- Staged writes and the commit/publish split
- Per-line documents and delete-by-path
- Generation counting
- Query parsing and search
"""

from __future__ import annotations

import pytest

from spidermonkey.index._internal.indexing import LexicalIndex


@pytest.fixture
def lexical_index() -> LexicalIndex:
    """Create a fresh in-memory LexicalIndex."""
    return LexicalIndex()


def _search(index: LexicalIndex, text: str, limit: int = 100) -> set[tuple[str, int]]:
    hits = index.search(index.searcher(), index.parse(text), limit)
    return {(h.path, h.line) for h in hits}


class TestStagedWrites:
    """Staging, commit and publish."""

    def test_new_index_is_empty_generation_zero(self, lexical_index: LexicalIndex) -> None:
        assert lexical_index.generation == 0
        assert lexical_index.doc_count() == 0

    def test_staged_file_not_visible_until_published(self, lexical_index: LexicalIndex) -> None:
        # Given
        lexical_index.stage_file("a.txt", ["hello world"])
        assert lexical_index.has_staged_changes()

        # When - committed but not yet published
        added = lexical_index.commit_staged()

        # Then
        assert added == 1
        assert lexical_index.doc_count() == 0
        assert lexical_index.generation == 0

        # When
        generation = lexical_index.publish()

        # Then
        assert generation == 1
        assert lexical_index.doc_count() == 1

    def test_one_document_per_line(self, lexical_index: LexicalIndex) -> None:
        lexical_index.stage_file("a.txt", ["alpha", "", "gamma"])
        lexical_index.commit_staged()
        lexical_index.publish()

        assert lexical_index.doc_count() == 3
        assert _search(lexical_index, "gamma") == {("a.txt", 3)}

    def test_restage_replaces_previous_documents(self, lexical_index: LexicalIndex) -> None:
        # Given
        lexical_index.stage_file("a.txt", ["old content", "more old"])
        lexical_index.commit_staged()
        lexical_index.publish()

        # When
        lexical_index.stage_file("a.txt", ["new content"])
        lexical_index.commit_staged()
        lexical_index.publish()

        # Then
        assert lexical_index.doc_count() == 1
        assert _search(lexical_index, "old") == set()
        assert _search(lexical_index, "new") == {("a.txt", 1)}

    def test_remove_deletes_all_lines_of_path(self, lexical_index: LexicalIndex) -> None:
        lexical_index.stage_file("a.txt", ["one", "two"])
        lexical_index.stage_file("b.txt", ["one"])
        lexical_index.commit_staged()
        lexical_index.publish()

        lexical_index.stage_remove("a.txt")
        lexical_index.commit_staged()
        lexical_index.publish()

        assert _search(lexical_index, "one") == {("b.txt", 1)}

    def test_path_delete_is_exact(self, lexical_index: LexicalIndex) -> None:
        """Removing 'src/a.py' must not touch 'src/a.py.bak' or 'a.py'."""
        lexical_index.stage_file("src/a.py", ["token"])
        lexical_index.stage_file("src/a.py.bak", ["token"])
        lexical_index.stage_file("a.py", ["token"])
        lexical_index.commit_staged()
        lexical_index.publish()

        lexical_index.stage_remove("src/a.py")
        lexical_index.commit_staged()
        lexical_index.publish()

        assert _search(lexical_index, "token") == {("src/a.py.bak", 1), ("a.py", 1)}

    def test_empty_commit_is_skipped_without_force(self, lexical_index: LexicalIndex) -> None:
        assert lexical_index.commit_staged() == 0
        assert lexical_index.publish() == 0

    def test_forced_empty_commit_advances_generation(self, lexical_index: LexicalIndex) -> None:
        lexical_index.commit_staged(force=True)
        assert lexical_index.publish() == 1

    def test_publish_without_commit_keeps_generation(self, lexical_index: LexicalIndex) -> None:
        lexical_index.stage_file("a.txt", ["x"])
        lexical_index.commit_staged()
        assert lexical_index.publish() == 1
        assert lexical_index.publish() == 1

    def test_discard_staged(self, lexical_index: LexicalIndex) -> None:
        lexical_index.stage_file("a.txt", ["x"])
        lexical_index.stage_remove("b.txt")

        assert lexical_index.discard_staged() == 2
        assert not lexical_index.has_staged_changes()

    def test_old_searcher_keeps_its_generation(self, lexical_index: LexicalIndex) -> None:
        # Given
        lexical_index.stage_file("a.txt", ["before"])
        lexical_index.commit_staged()
        lexical_index.publish()
        old_searcher = lexical_index.searcher()

        # When
        lexical_index.stage_file("a.txt", ["after"])
        lexical_index.commit_staged()
        lexical_index.publish()

        # Then
        old_hits = lexical_index.search(old_searcher, lexical_index.parse("before"), 10)
        assert [(h.path, h.line, h.body) for h in old_hits] == [("a.txt", 1, "before")]
        assert _search(lexical_index, "before") == set()


class TestQueries:
    """Parsing and searching."""

    @pytest.fixture
    def populated(self, lexical_index: LexicalIndex) -> LexicalIndex:
        lexical_index.stage_file("a.txt", ["hello world", "second line", "Hello again"])
        lexical_index.stage_file("b.txt", ["nothing here"])
        lexical_index.commit_staged()
        lexical_index.publish()
        return lexical_index

    def test_search_is_case_insensitive(self, populated: LexicalIndex) -> None:
        assert _search(populated, "HELLO") == {("a.txt", 1), ("a.txt", 3)}

    def test_bare_terms_are_ored(self, populated: LexicalIndex) -> None:
        assert _search(populated, "world nothing") == {("a.txt", 1), ("b.txt", 1)}

    def test_search_returns_stored_body(self, populated: LexicalIndex) -> None:
        hits = populated.search(populated.searcher(), populated.parse("second"), 10)
        assert hits[0].body == "second line"

    def test_limit_caps_results(self, populated: LexicalIndex) -> None:
        assert len(_search(populated, "hello", limit=1)) == 1

    def test_query_is_scoped_to_body(self, populated: LexicalIndex) -> None:
        """Path text is not searchable as free text."""
        assert _search(populated, "txt") == set()

    def test_unknown_field_raises_value_error(self, populated: LexicalIndex) -> None:
        with pytest.raises(ValueError):
            populated.parse("nosuchfield:value")
