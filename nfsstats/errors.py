"""
Custom exceptions for the NFS statistics collector.

This module provides exception classes with structured messaging that
include:
- Clear error descriptions
- Technical details for debugging
- Actionable suggestions for resolution

Fatal errors (source unreadable, no NFS mounts, snapshot not persisted)
propagate to the entry point and set the process exit code. The remaining
errors are raised or created locally, logged, and replaced with a safe
fallback by the component that detects them.
"""

from dataclasses import dataclass, field
from typing import Optional
from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes for nfsstats errors."""
    # Configuration errors (1xx)
    CONFIG_MISSING_REQUIRED = "E101"
    CONFIG_INVALID_VALUE = "E102"
    CONFIG_FILE_NOT_FOUND = "E103"
    CONFIG_PARSE_ERROR = "E104"

    # Parsing errors (3xx)
    MALFORMED_COUNTER = "E301"

    # Source errors (4xx)
    SOURCE_UNAVAILABLE = "E401"
    NO_MOUNTS_FOUND = "E402"

    # Snapshot errors (5xx)
    SNAPSHOT_LOAD_FAILED = "E501"
    SNAPSHOT_SAVE_FAILED = "E502"

    # Rate derivation conditions (6xx)
    STALE_INTERVAL = "E601"
    COUNTER_RESET = "E602"

    # Internal errors (9xx)
    INTERNAL_ERROR = "E901"


@dataclass
class NFSStatsError:
    """
    Structured error information.

    Attributes:
        code: Machine-readable error code.
        message: User-facing error message.
        details: Technical details for debugging.
        suggestion: How to fix the issue.
        context: Additional context information.
    """
    code: ErrorCode
    message: str
    details: str = ""
    suggestion: str = ""
    context: dict = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        lines = [f"[{self.code.value}] {self.message}"]
        if self.details:
            lines.append(f"  Details: {self.details}")
        if self.suggestion:
            lines.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(lines)


class NFSStatsException(Exception):
    """
    Base exception class for nfsstats.

    All custom exceptions inherit from this class and provide
    structured error information.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR,
                 details: str = "", suggestion: str = "", **context):
        self.error = NFSStatsError(
            code=code,
            message=message,
            details=details,
            suggestion=suggestion,
            context=context
        )
        super().__init__(str(self.error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def suggestion(self) -> str:
        return self.error.suggestion


class ConfigurationError(NFSStatsException):
    """
    Raised when command line options or the config file are invalid.

    Examples:
        - Config file not found
        - Config file is not valid YAML
        - Empty metric key prefix
    """

    def __init__(self, message: str, parameter: str = None,
                 expected=None, actual=None, suggestion: str = None,
                 code: ErrorCode = ErrorCode.CONFIG_INVALID_VALUE):
        details_parts = []
        if parameter:
            details_parts.append(f"Parameter: {parameter}")
        if expected is not None:
            details_parts.append(f"Expected: {expected}")
        if actual is not None:
            details_parts.append(f"Actual: {actual}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=suggestion or self._default_suggestion(code),
            parameter=parameter,
            expected=expected,
            actual=actual
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode) -> str:
        suggestions = {
            ErrorCode.CONFIG_MISSING_REQUIRED: "Provide the required option on the command line or in the config file",
            ErrorCode.CONFIG_INVALID_VALUE: "Check the option value and correct it",
            ErrorCode.CONFIG_FILE_NOT_FOUND: "Verify the config file path exists",
            ErrorCode.CONFIG_PARSE_ERROR: "Check config file syntax (YAML format)",
        }
        return suggestions.get(code, "Check the configuration and try again")


class SourceUnavailableError(NFSStatsException):
    """Raised when the mountstats report cannot be opened or read."""

    def __init__(self, message: str, path: str = None, reason: str = None,
                 suggestion: str = None):
        details_parts = []
        if path:
            details_parts.append(f"Path: {path}")
        if reason:
            details_parts.append(f"Reason: {reason}")

        super().__init__(
            message=message,
            code=ErrorCode.SOURCE_UNAVAILABLE,
            details="; ".join(details_parts),
            suggestion=suggestion or "Verify the kernel exposes mountstats and the file is readable",
            path=path,
            reason=reason
        )


class NoMountsFoundError(NFSStatsException):
    """Raised when the report was read but lists no nfs or nfs4 mounts."""

    def __init__(self, message: str = "No NFS mount points were found",
                 mounts_seen: int = 0):
        super().__init__(
            message=message,
            code=ErrorCode.NO_MOUNTS_FOUND,
            details=f"Mount lines examined: {mounts_seen}",
            suggestion="Mount an NFS export or run the collector on a host that has one",
            mounts_seen=mounts_seen
        )


class MalformedCounterError(NFSStatsException):
    """
    Raised when a per-op counter field is not a finite non-negative number.

    Local to one data line; the parser logs it and drops the line.
    """

    def __init__(self, token: str, line: str = None, device: str = None):
        details_parts = [f"Token: {token!r}"]
        if device is not None:
            details_parts.append(f"Device: {device}")
        if line:
            details_parts.append(f"Line: {line.strip()}")

        super().__init__(
            message=f"Counter field is not a valid counter: {token!r}",
            code=ErrorCode.MALFORMED_COUNTER,
            details="; ".join(details_parts),
            token=token,
            line=line,
            device=device
        )

    @property
    def token(self) -> str:
        return self.error.context["token"]


class SnapshotLoadError(NFSStatsException):
    """Raised when a prior snapshot record exists but cannot be used."""

    def __init__(self, message: str, path: str = None, reason: str = None):
        details_parts = []
        if path:
            details_parts.append(f"Path: {path}")
        if reason:
            details_parts.append(f"Reason: {reason}")

        super().__init__(
            message=message,
            code=ErrorCode.SNAPSHOT_LOAD_FAILED,
            details="; ".join(details_parts),
            suggestion="The record will be replaced on this run; metrics resume on the next one",
            path=path,
            reason=reason
        )


class SnapshotSaveError(NFSStatsException):
    """Raised when the current snapshot cannot be persisted."""

    def __init__(self, message: str, path: str = None, reason: str = None):
        details_parts = []
        if path:
            details_parts.append(f"Path: {path}")
        if reason:
            details_parts.append(f"Reason: {reason}")

        super().__init__(
            message=message,
            code=ErrorCode.SNAPSHOT_SAVE_FAILED,
            details="; ".join(details_parts),
            suggestion="Check permissions and free space in the plugin work directory",
            path=path,
            reason=reason
        )


class StaleIntervalError(NFSStatsException):
    """
    The prior snapshot is too old to derive per-second rates from.

    Not raised; the rate engine builds one to log the condition and
    returns no metrics.
    """

    def __init__(self, elapsed: float, limit: float):
        super().__init__(
            message="too long duration",
            code=ErrorCode.STALE_INTERVAL,
            details=f"Elapsed: {elapsed:g}s; Limit: {limit:g}s",
            elapsed=elapsed,
            limit=limit
        )


class CounterResetError(NFSStatsException):
    """A counter decreased between snapshots; its diff is clamped to zero."""

    def __init__(self, key: str, current: float, previous: float):
        super().__init__(
            message=f"counter seems to be reset: {key}",
            code=ErrorCode.COUNTER_RESET,
            details=f"Current: {current:g}; Previous: {previous:g}",
            key=key,
            current=current,
            previous=previous
        )

    @property
    def key(self) -> str:
        return self.error.context["key"]
