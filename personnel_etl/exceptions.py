from __future__ import annotations


class PersonnelError(Exception):
    """Base exception for the personnel ingestion package."""


class IngestionError(PersonnelError):
    """Raised when a source workbook is missing or cannot be read."""


class ValidationError(PersonnelError):
    """Raised when input to a mutation is invalid or violates a record invariant."""


class AuthenticationError(PersonnelError):
    """Raised when admin credentials are invalid."""


class AuthorizationError(PersonnelError):
    """Raised when a mutation is attempted without a valid admin session."""


class NotFoundError(PersonnelError):
    """Raised when an entity id is not present in the document."""
