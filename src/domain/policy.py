"""
Authorization guards shared by the API boundary and the link catalog gateway.

Two roles exist: administrators manage the shared service/icon catalog,
owners manage their own user links. The same guards run in both layers.
"""

from uuid import UUID

from src.domain.entities import Principal
from src.domain.errors import AuthenticationRequiredError, PermissionDeniedError


def require_principal(principal: Principal | None) -> Principal:
    if principal is None:
        raise AuthenticationRequiredError()
    return principal


def require_admin(principal: Principal | None) -> Principal:
    """Ensure the caller is authenticated and holds the admin role."""
    principal = require_principal(principal)
    if not principal.is_admin:
        raise PermissionDeniedError("Administrator role required")
    return principal


def assert_owner(principal_id: UUID, owner_id: UUID, resource: str = "link") -> None:
    """Raise PermissionDeniedError unless principal_id owns the resource."""
    if principal_id != owner_id:
        raise PermissionDeniedError(f"You do not own this {resource}")


def can_read_user_links(principal: Principal, user_id: UUID) -> bool:
    """Owners read their own links; administrators read anyone's."""
    return principal.id == user_id or principal.is_admin
