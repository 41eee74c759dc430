"""Volume data error types."""

from __future__ import annotations

from enum import Enum


class VolumeDataErrorCode(Enum):
    """Error classification codes."""

    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    BAD_STATUS = "bad_status"
    VALIDATION_FAILED = "validation_failed"
    NO_DATA = "no_data"


class VolumeDataError(Exception):
    """Raised when intraday volume input is unavailable.

    Every instance means the bar sequence could not be obtained; the
    aggregator is never invoked for a failed fetch.

    Attributes:
        message: Human-readable error description.
        code: Structured error code for programmatic handling.
        retryable: Whether the caller should try the next provider.
    """

    def __init__(
        self,
        message: str,
        code: VolumeDataErrorCode = VolumeDataErrorCode.PROVIDER_ERROR,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable
