"""
Error taxonomy for policy resolution.

Every error is raised during the pure resolution phase, before any entity is
proposed for creation. Resolution either returns a complete document or raises.
"""
from typing import Any, Dict, Optional


class PolicyError(Exception):
    """Base exception for all resolution errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a JSON-ready dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return self.message


class ConfigValidationError(PolicyError, ValueError):
    """Malformed prefix, empty environment/owner lists, out-of-range values."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message, details)
        self.field_errors = field_errors or {}
        if self.field_errors:
            self.details["field_errors"] = self.field_errors


class RoleLookupError(PolicyError, LookupError):
    """An environment or resource type has no role table entry."""


class ReferentialError(PolicyError):
    """A missing parent key, or a scope tier enabled without its prerequisite."""


class CardinalityError(PolicyError):
    """An assignment would carry more than one role."""
