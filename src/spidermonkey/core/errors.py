"""SpiderMonkey error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index
- 6xxx: Pre-scan task
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Index (3xxx)
    INDEX_NOT_READY = 3001
    INDEX_ALREADY_BUILT = 3002
    INDEX_COMMIT_FAILED = 3003

    # Pre-scan task (6xxx)
    PRESCAN_COMMAND_INVALID = 6001
    PRESCAN_COMMAND_FAILED = 6002


@dataclass(frozen=True, slots=True)
class SpiderMonkeyError(Exception):
    """Base error with structured context for logs and JSON responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SpiderMonkeyError):
    """Configuration-related errors. Always fatal at startup."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class IndexingError(SpiderMonkeyError):
    """Errors raised by the index synchronizer."""

    @classmethod
    def not_ready(cls) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_NOT_READY,
            message="Index has not been built yet; run a full build first",
        )

    @classmethod
    def already_built(cls) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_ALREADY_BUILT,
            message="Index is already built; use resync for incremental updates",
        )

    @classmethod
    def commit_failed(cls, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_COMMIT_FAILED,
            message=f"Index commit failed: {reason}",
            retryable=True,
            details={"reason": reason},
        )


class PreScanError(SpiderMonkeyError):
    """A pre-scan command could not be parsed, started, or exited non-zero."""

    @classmethod
    def invalid_command(cls, command: str, reason: str) -> "PreScanError":
        return cls(
            code=ErrorCode.PRESCAN_COMMAND_INVALID,
            message=f"Failed to parse command '{command}': {reason}",
            details={"command": command, "reason": reason},
        )

    @classmethod
    def command_failed(cls, command: str, reason: str, returncode: int = -1) -> "PreScanError":
        return cls(
            code=ErrorCode.PRESCAN_COMMAND_FAILED,
            message=f"Command '{command}' failed: {reason}",
            retryable=True,
            details={"command": command, "reason": reason, "returncode": returncode},
        )

