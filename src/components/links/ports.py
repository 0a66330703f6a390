"""
Links component - Port interfaces.

Repositories do not enforce uniqueness or reference rules beyond what the
schema declares; the gateway does.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from src.domain.entities import Icon, Service, UserLink

from .models import IconFilters, LinkFilters, OrderScope, OrderUpdate, ServiceFilters


class ServiceRepoPort(Protocol):
    """Repository interface for services."""

    def get_by_id(self, service_id: UUID) -> Service | None: ...

    def find_by_name_or_slug(
        self, name: str | None, slug: str | None, exclude_id: UUID | None = None
    ) -> list[Service]:
        """Services whose name or slug equals the given values."""
        ...

    def list(self, filters: ServiceFilters) -> list[Service]:
        """Services matching filters, ordered by sort_order."""
        ...

    def save(self, service: Service) -> Service: ...

    def delete(self, service_id: UUID) -> None: ...


class IconRepoPort(Protocol):
    """Repository interface for icons."""

    def get_by_id(self, icon_id: UUID) -> Icon | None: ...

    def list(self, filters: IconFilters) -> list[Icon]: ...

    def count_by_service(self, service_id: UUID) -> int: ...

    def save(self, icon: Icon) -> Icon: ...

    def delete(self, icon_id: UUID) -> None: ...


class UserLinkRepoPort(Protocol):
    """Repository interface for user links."""

    def get_by_id(self, link_id: UUID) -> UserLink | None: ...

    def list_for_user(self, user_id: UUID, filters: LinkFilters) -> list[UserLink]: ...

    def count_by_service(self, service_id: UUID) -> int: ...

    def count_by_icon(self, icon_id: UUID) -> int: ...

    def save(self, link: UserLink) -> UserLink: ...

    def delete(self, link_id: UUID) -> None: ...


class SortOrderStorePort(Protocol):
    """Sort-order reads and atomic bulk updates per scope."""

    def max_sort_order(self, scope: OrderScope) -> int | None:
        """Highest sort_order in scope, None when the scope is empty."""
        ...

    def apply(self, scope: OrderScope, updates: Sequence[OrderUpdate]) -> None:
        """
        Apply all updates in one transaction.

        Raises NotFoundError (and applies nothing) if any id is not in scope.
        """
        ...


class BlobStorePort(Protocol):
    """External object storage; the catalog keeps only the returned key."""

    def save(self, name: str, data: bytes) -> str: ...

    def delete(self, path: str) -> None: ...
