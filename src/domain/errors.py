"""
Error taxonomy for the link catalog.

A closed set of tagged errors. The API boundary maps ErrorKind to an HTTP
status through one table; any other exception is an unexpected failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

# --- Validation Errors ---


@dataclass(frozen=True)
class FieldError:
    """Field-level validation error."""

    code: str
    message: str
    field: str | None = None


# --- Error Types ---


class ErrorKind(str, Enum):
    VALIDATION_FAILED = "validation_failed"
    AUTHENTICATION_REQUIRED = "authentication_required"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    IN_USE = "in_use"
    INVALID_REFERENCE = "invalid_reference"
    RATE_LIMITED = "rate_limited"


class LinkCatalogError(Exception):
    """Base link catalog error. Every subclass carries a fixed kind."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CatalogValidationError(LinkCatalogError):
    """Payload failed validation."""

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, errors: list[FieldError], message: str = "Validation failed") -> None:
        self.errors = list(errors)
        super().__init__(message)


class AuthenticationRequiredError(LinkCatalogError):
    kind = ErrorKind.AUTHENTICATION_REQUIRED

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class PermissionDeniedError(LinkCatalogError):
    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message)


class NotFoundError(LinkCatalogError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: UUID | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class DuplicateError(LinkCatalogError):
    kind = ErrorKind.DUPLICATE

    def __init__(self, field_name: str, value: str) -> None:
        self.field = field_name
        self.value = value
        super().__init__(f"{field_name} '{value}' is already in use")


class InUseError(LinkCatalogError):
    """Delete blocked by records that still reference the target."""

    kind = ErrorKind.IN_USE

    def __init__(self, entity: str, entity_id: UUID, references: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.references = references
        super().__init__(
            f"{entity} is in use and cannot be deleted ({references} references)"
        )


class InvalidReferenceError(LinkCatalogError):
    """A referenced record exists but cannot be combined with the target."""

    kind = ErrorKind.INVALID_REFERENCE


class RateLimitedError(LinkCatalogError):
    kind = ErrorKind.RATE_LIMITED

    def __init__(self, key: str, retry_after_seconds: int) -> None:
        self.key = key
        self.retry_after_seconds = retry_after_seconds
        super().__init__("Too many requests, try again later")

