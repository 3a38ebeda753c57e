"""Core module exports."""

from spidermonkey.core.errors import (
    ConfigError,
    ErrorCode,
    IndexingError,
    PreScanError,
    SpiderMonkeyError,
)
from spidermonkey.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)
from spidermonkey.core.progress import spinner, status, task

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "IndexingError",
    "PreScanError",
    "SpiderMonkeyError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
    # Progress
    "spinner",
    "status",
    "task",
]
