"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. CLI flags (passed as kwargs to load_config())
2. Environment variables (SPIDERMONKEY__SECTION__KEY)
3. YAML config file given with --config
4. Built-in defaults (this file)

Environment Variable Format:
    SPIDERMONKEY__<SECTION>__<KEY>=<VALUE>

Examples:
    SPIDERMONKEY__LOGGING__LEVEL=DEBUG
    SPIDERMONKEY__SCAN__RESCAN_INTERVAL=5m
    SPIDERMONKEY__SEARCH__MAX_RESULTS=500
"""

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from spidermonkey.config.constants import (
    DEFAULT_ENDPOINT,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_RESCAN_INTERVAL_SEC,
    PORT_MAX,
    PORT_MIN,
    SEARCH_RESULT_CAP,
    SEARCH_RESULT_CAP_MAX,
    WRITER_HEAP_BYTES_MIN,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]*)")

_DURATION_UNITS: dict[str, float] = {
    "ms": 0.001,
    "msec": 0.001,
    "": 1.0,
    "s": 1.0,
    "sec": 1.0,
    "secs": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "m": 60.0,
    "min": 60.0,
    "mins": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
    "h": 3600.0,
    "hr": 3600.0,
    "hrs": 3600.0,
    "hour": 3600.0,
    "hours": 3600.0,
    "d": 86400.0,
    "day": 86400.0,
    "days": 86400.0,
}


def parse_duration(value: str) -> float:
    """Parse a duration like '30s', '10m', '2h' or '1h 30m' into seconds.

    A bare number is taken as seconds.

    Raises:
        ValueError: On empty input, unknown units, or trailing garbage.
    """
    text = value.strip().lower()
    if not text:
        raise ValueError("Empty duration")

    total = 0.0
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        match = _DURATION_PART.match(text, pos)
        if match is None or match.end() == pos:
            raise ValueError(f"Invalid duration format: {value!r}")
        number, unit = match.groups()
        if unit not in _DURATION_UNITS:
            raise ValueError(f"Unknown duration unit {unit!r} in {value!r}")
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()
    return total


def parse_endpoint(value: str) -> tuple[str, int]:
    """Split 'host:port' into its parts. IPv6 hosts must be bracketed."""
    host, sep, port_str = value.strip().rpartition(":")
    if not sep or not host or not port_str.isdigit():
        raise ValueError(f"Endpoint must look like HOST:PORT, got {value!r}")
    port = int(port_str)
    if not (PORT_MIN <= port <= PORT_MAX):
        raise ValueError(f"Port must be {PORT_MIN}-{PORT_MAX}, got {port}")
    return host.strip("[]"), port


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SPIDERMONKEY__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every skipped file and query parse failure.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """HTTP server configuration.

    Env vars:
        SPIDERMONKEY__SERVER__ENDPOINT: Bind address as HOST:PORT (default: 127.0.0.1:3000)
    """

    endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="Bind address. Use 0.0.0.0:PORT for network access.",
    )
    stop_timeout_sec: float = Field(
        default=5.0,
        description="Time allowed for the rescan task to finish on shutdown.",
    )
    force_exit_sec: float = Field(
        default=3.0,
        description="Force exit timeout after graceful shutdown fails.",
    )

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        parse_endpoint(v)
        return v.strip()

    @property
    def host(self) -> str:
        return parse_endpoint(self.endpoint)[0]

    @property
    def port(self) -> int:
        return parse_endpoint(self.endpoint)[1]


class ScanConfig(BaseModel):
    """What to index and how often to resync.

    Mirrors the ``scan_settings`` section of the YAML file.

    Env vars:
        SPIDERMONKEY__SCAN__SCAN_DIRECTORY: Root directory to index
        SPIDERMONKEY__SCAN__RESCAN_INTERVAL: Duration between resyncs (e.g. 30s, 5m)
    """

    scan_directory: str = Field(
        default="",
        description="Root of the tree to index. Required.",
    )
    rescan_interval: float = Field(
        default=DEFAULT_RESCAN_INTERVAL_SEC,
        description="Seconds between resync cycles. Accepts duration strings like '30s'.",
    )
    pre_scan_commands: list[str] = Field(
        default_factory=list,
        description="Shell command lines run in scan_directory before each resync. "
        "A failing command skips that cycle's indexing.",
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        description="Paths containing any of these substrings (or matching these globs) "
        "are never indexed.",
    )

    @field_validator("rescan_interval", mode="before")
    @classmethod
    def validate_rescan_interval(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = parse_duration(v)
        if isinstance(v, int | float) and v <= 0:
            raise ValueError(f"Rescan interval must be positive, got {v}")
        return v

    @field_validator("scan_directory")
    @classmethod
    def validate_scan_directory(cls, v: str) -> str:
        return v.strip()


class SearchConfig(BaseModel):
    """Query execution limits.

    Env vars:
        SPIDERMONKEY__SEARCH__MAX_RESULTS: Ceiling on matches fetched per query
    """

    max_results: int = Field(
        default=SEARCH_RESULT_CAP,
        description="Maximum matching lines fetched per query. "
        "TRADEOFF: Higher values cost memory and latency on very broad queries.",
    )

    @field_validator("max_results")
    @classmethod
    def validate_max_results(cls, v: int) -> int:
        if not (1 <= v <= SEARCH_RESULT_CAP_MAX):
            raise ValueError(f"max_results must be 1-{SEARCH_RESULT_CAP_MAX}, got {v}")
        return v


class IndexerConfig(BaseModel):
    """Background indexing configuration.

    Env vars:
        SPIDERMONKEY__INDEXER__HASH_WORKERS: Parallel fingerprinting threads
        SPIDERMONKEY__INDEXER__WRITER_HEAP_BYTES: Tantivy writer memory budget
    """

    hash_workers: int = Field(
        default=8,
        description="Threads used to fingerprint files. I/O bound, so more than CPU count is fine.",
    )
    writer_heap_bytes: int = Field(
        default=50_000_000,
        description="Tantivy writer memory budget per thread.",
    )
    writer_threads: int = Field(
        default=1,
        description="Tantivy indexing threads.",
    )

    @field_validator("hash_workers", "writer_threads")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be at least 1, got {v}")
        return v

    @field_validator("writer_heap_bytes")
    @classmethod
    def validate_heap(cls, v: int) -> int:
        if v < WRITER_HEAP_BYTES_MIN:
            raise ValueError(f"Writer heap must be at least {WRITER_HEAP_BYTES_MIN} bytes")
        return v


class SpiderMonkeyConfig(BaseModel):
    """Root configuration for SpiderMonkey."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
