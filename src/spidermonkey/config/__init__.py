"""Config module exports."""

from spidermonkey.config.loader import load_config, validate_config
from spidermonkey.config.models import (
    IndexerConfig,
    LoggingConfig,
    ScanConfig,
    SearchConfig,
    ServerConfig,
    SpiderMonkeyConfig,
    parse_duration,
    parse_endpoint,
)

__all__ = [
    "load_config",
    "validate_config",
    "parse_duration",
    "parse_endpoint",
    "SpiderMonkeyConfig",
    "IndexerConfig",
    "LoggingConfig",
    "ScanConfig",
    "SearchConfig",
    "ServerConfig",
]
