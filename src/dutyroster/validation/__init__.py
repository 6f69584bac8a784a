"""Validation module for rosters and schedules."""

from dutyroster.validation.validator import (
    RosterError,
    RosterValidator,
    ScheduleValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "RosterError",
    "RosterValidator",
    "ScheduleValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
