"""Exception types raised by the calculators and the history store."""

from typing import Any, Dict, Optional


class FitnessError(Exception):
    """Base exception for all fitness_tracker errors.

    Attributes:
        message: Human-readable error message.
        details: Optional additional context, e.g. the offending field.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DomainError(FitnessError, ValueError):
    """Invalid physical input, such as a non-positive height or a NaN weight."""


class NotFoundError(FitnessError):
    """A requested profile or history entry does not exist."""
