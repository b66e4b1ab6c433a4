"""
Classification of per-record and per-batch failures.

Validation failures become Skip outcomes (logged, counted, run continues).
Everything else becomes Fatal and must abort the run: unknown failures are
never swallowed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from core.exceptions import (
    FATAL_REPOSITORY_WRITE_FAILED,
    FATAL_TRANSFORM_UNEXPECTED,
    ImporterException,
    ImportFatalError,
    InvalidPoiError,
)

SKIP_EVENT = "import.poi_skipped"


@dataclass(frozen=True)
class ImportErrorContext:
    """Where in the run a failure happened"""
    page: int
    offset: int
    page_size: Optional[int] = None
    index: Optional[int] = None
    external_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "page": self.page,
            "offset": self.offset,
            "pageSize": self.page_size,
            "index": self.index,
            "externalId": self.external_id,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class Skip:
    code: str
    reason: str
    log: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Fatal:
    error: ImportFatalError


Classification = Union[Skip, Fatal]


def _error_message(reason: BaseException) -> str:
    if isinstance(reason, ImporterException):
        return reason.message
    return str(reason) or type(reason).__name__


def classify_transform_failure(reason: BaseException, context: ImportErrorContext) -> Classification:
    """
    Decide skip-or-abort for an exception raised while transforming a record.

    The skip log carries location and identity only, never the raw record.
    """
    if isinstance(reason, InvalidPoiError):
        log: Dict[str, Any] = {
            "event": SKIP_EVENT,
            "reason": reason.message,
            "page": context.page,
            "offset": context.offset,
            "pageSize": context.page_size,
        }
        if context.external_id is not None:
            log["externalId"] = context.external_id
        return Skip(code=reason.code, reason=reason.message, log=log)

    message = (
        f"Unexpected transform failure at page={context.page}, offset={context.offset}, "
        f"index={context.index}: {_error_message(reason)}"
    )
    return Fatal(
        error=ImportFatalError(
            code=FATAL_TRANSFORM_UNEXPECTED,
            message=message,
            context=context.to_dict(),
            cause=reason,
        )
    )


def wrap_repository_failure(reason: BaseException, context: ImportErrorContext) -> ImportFatalError:
    """Wrap a failed batch write; the cause is attached but never serialized"""
    message = (
        f"Repository write failed at page={context.page}, offset={context.offset}: "
        f"{_error_message(reason)}"
    )
    return ImportFatalError(
        code=FATAL_REPOSITORY_WRITE_FAILED,
        message=message,
        context=context.to_dict(),
        cause=reason,
    )
