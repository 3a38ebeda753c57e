"""Configuration constants.

This module contains values that are NOT user-configurable per request.
For configurable values, see models.py.
"""

# =============================================================================
# Search
# =============================================================================

SEARCH_RESULT_CAP = 10_000
"""Default ceiling on matching line documents fetched per query."""

SEARCH_RESULT_CAP_MAX = 1_000_000
"""Hard maximum for search.max_results in config."""

CONTEXT_LINES = 3
"""Lines of context before and after a matched line in a snippet."""

SEARCH_FIELD = "body"
"""The only field free-text queries are scoped to."""

# =============================================================================
# Scanning / indexing defaults
# =============================================================================

DEFAULT_ENDPOINT = "127.0.0.1:3000"
DEFAULT_RESCAN_INTERVAL_SEC = 30.0
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (".git",)

HASH_CHUNK_BYTES = 1 << 16
"""Read size when fingerprinting file content."""

WRITER_HEAP_BYTES_MIN = 15_000_000
"""Tantivy refuses writer heaps below ~15MB per thread."""

# =============================================================================
# Protocol/Validation Constants
# =============================================================================

PORT_MIN = 0
PORT_MAX = 65535
"""Valid port range."""
