"""
Custom exceptions for the scheduling engine.
"""

from typing import Any, Optional


class SchedulerError(Exception):
    """Base exception for autoschedule."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(SchedulerError):
    """Resource not found."""

    pass


class ValidationError(SchedulerError):
    """Validation error."""

    pass
