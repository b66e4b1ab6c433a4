"""
Custom exceptions for the POI import pipeline with structured error context.

Every exception carries a context dictionary so failures can be logged and
reproduced without re-running the whole import.

Exception Hierarchy:
    ImporterException (base)
    ├── ConfigurationError
    ├── ExtractionError
    │   ├── RemoteRequestError
    │   └── RemoteResponseFormatError
    ├── TransformationError
    │   └── InvalidPoiError
    └── ImportFatalError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


SKIP_INVALID_RECORD = "invalid_record"
FATAL_TRANSFORM_UNEXPECTED = "transform_unexpected"
FATAL_REPOSITORY_WRITE_FAILED = "repository_write_failed"


class ImporterException(Exception):
    """
    Base exception for all importer errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (page, offset, url, ...)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(message)
        if original_exception is not None:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception is not None:
            base_msg += (
                f" | Caused by: {type(self.original_exception).__name__}: "
                f"{self.original_exception}"
            )

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": dict(self.context),
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(ImporterException, ValueError):
    """
    Raised when runtime configuration is missing or out of its allowed range.

    Context should include:
        - setting: Name of the offending setting
        - value: The rejected value
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ImporterException):
    """Base exception for remote fetch failures."""
    pass


class RemoteRequestError(ExtractionError):
    """
    Raised when the remote API answers with a non-2xx status.

    Context includes:
        - url: Request URL with secrets redacted
        - status_code: HTTP status code
        - retry_after: Validated Retry-After seconds (429 only, may be None)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        url: str,
        retry_after: Optional[int] = None,
        body: str = ""
    ):
        super().__init__(
            message,
            context={"url": url, "status_code": status_code, "retry_after": retry_after}
        )
        self.status_code = status_code
        self.url = url
        self.retry_after = retry_after
        self.body = body


class RemoteResponseFormatError(ExtractionError):
    """Raised when a 2xx response body is not a JSON array. Never retried."""
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ImporterException):
    """Base exception for record transformation failures."""
    pass


class InvalidPoiError(TransformationError):
    """
    A single raw record failed identity validation.

    This is the only error type the import run recovers from: the record is
    skipped, logged and counted.
    """

    code = SKIP_INVALID_RECORD


# ============================================================================
# Fatal Import Errors
# ============================================================================

class ImportFatalError(ImporterException):
    """
    Aborts the whole import run.

    Attributes:
        code: ``transform_unexpected`` or ``repository_write_failed``
        context: page, offset and, when known, pageSize, index, externalId
        cause: the underlying exception. Chained for tracebacks but never
            serialized by ``to_dict`` or rendered by ``str``.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: Dict[str, Any],
        cause: Optional[BaseException] = None
    ):
        super().__init__(message, context=context)
        self.code = code
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.__class__.__name__}[{self.code}]: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
            "timestamp": self.timestamp.isoformat(),
        }
