"""Exception types raised by the service layer."""

from __future__ import annotations


class ResumeBuilderError(Exception):
    """Base class for all application errors."""


class NotFoundError(ResumeBuilderError):
    """Raised when a requested record does not exist."""


class AuthenticationError(ResumeBuilderError):
    """Raised for bad credentials or an invalid/expired token."""


class ValidationFailedError(ResumeBuilderError):
    """Raised when a write is rejected.

    Attributes:
        errors: Mapping of field path (e.g. ``experiences.1.company_name``)
            to the list of reasons the value was rejected.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        summary = "; ".join(f"{field}: {', '.join(reasons)}" for field, reasons in errors.items())
        super().__init__(summary or "validation failed")


class MalformedPayloadError(ValidationFailedError):
    """Raised when an update payload does not have the documented shape."""
