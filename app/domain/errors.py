"""Error hierarchy for the schedule subsystem.

Every failure is scoped to one request and carries enough detail (field,
conflicting stamp) for the caller to act without re-querying.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    VALIDATION = "validation"
    INVALID_INPUT = "invalid_input"
    RESOURCE_NOT_FOUND = "resource_not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"


class ScheduleError(Exception):
    """Base exception for all schedule errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        http_status: int = 400,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.http_status = http_status
        self.field = field
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to the REST error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "field": self.field,
                "details": self.details,
            }
        }


class ScheduleValidationError(ScheduleError):
    """Contradictory or out-of-range input, e.g. end before start."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION, 400, field,
        )


class InvalidInputError(ScheduleError):
    """Unparsable date, time or timezone."""

    def __init__(self, message: str, field: str, value: object = None) -> None:
        super().__init__(
            message,
            "INVALID_INPUT",
            ErrorCategory.INVALID_INPUT,
            400,
            field,
            {"value": value} if value is not None else None,
        )


class ResourceNotFoundError(ScheduleError):
    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND",
            ErrorCategory.RESOURCE_NOT_FOUND,
            404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ForbiddenError(ScheduleError):
    """Caller is not the organizer of the event. Raised by the HTTP layer."""

    def __init__(self, message: str = "Only the event organizer can modify its schedule") -> None:
        super().__init__(message, "FORBIDDEN", ErrorCategory.FORBIDDEN, 403)


class ConcurrencyError(ScheduleError):
    """The entry changed since the caller read it; reload and retry."""

    def __init__(self, entry_id: str, current_stamp: datetime) -> None:
        super().__init__(
            "Schedule entry was modified by another user. Please refresh and try again.",
            "CONCURRENCY_CONFLICT",
            ErrorCategory.CONFLICT,
            409,
            details={
                "entry_id": entry_id,
                "current_stamp": current_stamp.isoformat(),
            },
        )
        self.entry_id = entry_id
        self.current_stamp = current_stamp


class DuplicateAssignmentError(ScheduleError):
    def __init__(self, entry_id: str, speaker_id: str) -> None:
        super().__init__(
            "Speaker is already assigned to this session",
            "DUPLICATE_ASSIGNMENT",
            ErrorCategory.CONFLICT,
            409,
            field="speaker_id",
            details={"entry_id": entry_id, "speaker_id": speaker_id},
        )
