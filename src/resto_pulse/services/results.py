"""Error taxonomy and the success/failure result returned by services.

Services raise the exceptions below internally. :func:`guarded` is the
boundary that turns them (and storage errors) into a :class:`ServiceResult`
so callers can render inline feedback without catching exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")

IDENTITY_LOG_PREFIX = 8


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    QUOTA_EXCEEDED = "quota_exceeded"
    OWNERSHIP = "ownership"


class RestoPulseError(RuntimeError):
    """Base exception for service-layer failures."""

    kind: ErrorKind = ErrorKind.VALIDATION


class ValidationError(RestoPulseError):
    """Malformed input rejected before any durable write."""

    kind = ErrorKind.VALIDATION


class NotFoundError(RestoPulseError):
    """The targeted restaurant, review or suggestion does not exist."""

    kind = ErrorKind.NOT_FOUND


class TransientError(RestoPulseError):
    """Network or storage unavailable; the caller may retry."""

    kind = ErrorKind.TRANSIENT


class QuotaExceededError(RestoPulseError):
    """Daily review cap or upload count cap reached."""

    kind = ErrorKind.QUOTA_EXCEEDED


class OwnershipError(RestoPulseError):
    """The caller's identity does not own the targeted record."""

    kind = ErrorKind.OWNERSHIP


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Discriminated success/failure value returned by service operations."""

    success: bool
    value: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> ServiceResult[T]:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> ServiceResult[T]:
        return cls(success=False, error=error, kind=kind)

    def __bool__(self) -> bool:
        return self.success


def token_prefix(identity: str | None) -> str:
    """Return the loggable prefix of an identity token."""
    if not identity:
        return "<none>"
    return identity[:IDENTITY_LOG_PREFIX]


def guarded(
    operation: str,
    db: Session | None,
    func: Callable[[], T],
    **context: Any,
) -> ServiceResult[T]:
    """Run ``func`` and translate failures into a :class:`ServiceResult`.

    The session is rolled back on any failure so no partial write survives.

    Args:
        operation: Name used in log lines.
        db: Session to roll back on failure, if any.
        func: Zero-argument callable performing the work.
        **context: Extra fields for the log line (entity id, identity, ...).
            An ``identity`` entry is logged as its prefix only.
    """
    if "identity" in context:
        context["identity"] = token_prefix(context["identity"])
    try:
        return ServiceResult.ok(func())
    except RestoPulseError as exc:
        if db is not None:
            db.rollback()
        logger.info("%s rejected (%s): %s %s", operation, exc.kind.value, exc, context)
        return ServiceResult.fail(exc.kind, str(exc))
    except SQLAlchemyError as exc:
        if db is not None:
            db.rollback()
        logger.error("%s failed on storage: %s %s", operation, exc, context, exc_info=True)
        return ServiceResult.fail(ErrorKind.TRANSIENT, "Storage is temporarily unavailable")
