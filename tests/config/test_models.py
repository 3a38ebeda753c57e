"""Tests for config/models.py module.

Covers:
- parse_duration() / parse_endpoint() helpers
- ScanConfig, ServerConfig, SearchConfig, IndexerConfig validation
- SpiderMonkeyConfig defaults
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from spidermonkey.config.constants import SEARCH_RESULT_CAP
from spidermonkey.config.models import (
    IndexerConfig,
    LogOutputConfig,
    ScanConfig,
    SearchConfig,
    ServerConfig,
    SpiderMonkeyConfig,
    parse_duration,
    parse_endpoint,
)


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("text", "seconds"),
        [
            ("30s", 30.0),
            ("30", 30.0),
            ("10m", 600.0),
            ("2h", 7200.0),
            ("1d", 86400.0),
            ("500ms", 0.5),
            ("1h 30m", 5400.0),
            ("1h30m", 5400.0),
            ("1.5h", 5400.0),
            ("5 mins", 300.0),
            ("  45sec ", 45.0),
            ("2H", 7200.0),
        ],
    )
    def test_valid_durations(self, text: str, seconds: float) -> None:
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "   ", "abc", "10 parsecs", "-5s", "5s!"])
    def test_invalid_durations_raise(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_duration(text)


class TestParseEndpoint:
    """Tests for parse_endpoint."""

    def test_host_and_port(self) -> None:
        assert parse_endpoint("127.0.0.1:3000") == ("127.0.0.1", 3000)

    def test_bracketed_ipv6(self) -> None:
        assert parse_endpoint("[::1]:8080") == ("::1", 8080)

    @pytest.mark.parametrize("text", ["localhost", ":3000", "host:", "host:abc", "host:70000"])
    def test_invalid_endpoints_raise(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_endpoint(text)


class TestScanConfig:
    """Tests for ScanConfig."""

    def test_defaults(self) -> None:
        config = ScanConfig()
        assert config.scan_directory == ""
        assert config.rescan_interval == 30.0
        assert config.pre_scan_commands == []
        assert config.exclude_patterns == [".git"]

    def test_duration_string_is_parsed(self) -> None:
        assert ScanConfig(rescan_interval="5m").rescan_interval == 300.0

    def test_numeric_interval_is_seconds(self) -> None:
        assert ScanConfig(rescan_interval=12).rescan_interval == 12.0

    def test_invalid_duration_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScanConfig(rescan_interval="soonish")

    def test_zero_interval_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScanConfig(rescan_interval=0)

    def test_scan_directory_is_stripped(self) -> None:
        assert ScanConfig(scan_directory="  /srv/code ").scan_directory == "/srv/code"


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_default_endpoint(self) -> None:
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 3000

    def test_custom_endpoint(self) -> None:
        config = ServerConfig(endpoint="0.0.0.0:8080")
        assert config.host == "0.0.0.0"
        assert config.port == 8080

    def test_invalid_endpoint_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(endpoint="nope")


class TestSearchConfig:
    """Tests for SearchConfig."""

    def test_default_cap(self) -> None:
        assert SearchConfig().max_results == SEARCH_RESULT_CAP

    @pytest.mark.parametrize("value", [0, -1, 10_000_000])
    def test_out_of_range_is_rejected(self, value: int) -> None:
        with pytest.raises(ValidationError):
            SearchConfig(max_results=value)


class TestIndexerConfig:
    """Tests for IndexerConfig."""

    def test_defaults(self) -> None:
        config = IndexerConfig()
        assert config.hash_workers == 8
        assert config.writer_threads == 1

    def test_zero_workers_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IndexerConfig(hash_workers=0)

    def test_tiny_heap_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IndexerConfig(writer_heap_bytes=1024)


class TestLogOutputConfig:
    """Tests for LogOutputConfig."""

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/sm.log")

    def test_stream_destinations_accepted(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"


class TestSpiderMonkeyConfig:
    """Tests for the root model."""

    def test_all_sections_have_defaults(self) -> None:
        config = SpiderMonkeyConfig()
        assert config.logging.level == "INFO"
        assert config.server.endpoint == "127.0.0.1:3000"
        assert config.scan.exclude_patterns == [".git"]
