"""Typed result dicts shared by the tool functions."""

import logging
from typing import Any, TypedDict

from coachbook.errors import BookingError, SlotUnavailable

logger = logging.getLogger(__name__)


class ErrorFields(TypedDict, total=False):
    """Failure fields present on every result when ``success`` is False."""

    success: bool
    message: str
    error_code: str
    retryable: bool
    refresh_availability: bool
    details: dict[str, Any]


def error_result(exc: BookingError) -> dict[str, Any]:
    """Convert a domain error into a failure result."""
    logger.info("Operation failed: %s (%s)", exc.code, exc.message)
    result: dict[str, Any] = {
        "success": False,
        "message": exc.message,
        "error_code": exc.code,
        "retryable": exc.retryable,
        "details": exc.details,
    }
    if isinstance(exc, SlotUnavailable):
        result["refresh_availability"] = True
    return result
