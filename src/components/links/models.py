"""
Links component - Data models.

Filters, ordering scopes and operation inputs/outputs for the
service/icon/user-link catalog. Errors live in src.domain.errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

from src.domain.entities import (
    Icon,
    IconColorScheme,
    IconStyle,
    IconUsage,
    Service,
    ServiceUsage,
    UserLinkView,
)
from src.domain.errors import (
    AuthenticationRequiredError,
    CatalogValidationError,
    DuplicateError,
    ErrorKind,
    FieldError,
    InUseError,
    InvalidReferenceError,
    LinkCatalogError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitedError,
)

__all__ = [
    "AuthenticationRequiredError",
    "CatalogValidationError",
    "DuplicateError",
    "ErrorKind",
    "FieldError",
    "InUseError",
    "InvalidReferenceError",
    "LinkCatalogError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitedError",
    "ServiceFilters",
    "IconFilters",
    "LinkFilters",
    "OrderCollection",
    "OrderScope",
    "OrderUpdate",
    "NewIcon",
    "UploadedFile",
    "ServiceListOutput",
    "ServiceDetailOutput",
    "IconListOutput",
    "UserLinkListOutput",
]


# --- Filters ---


@dataclass(frozen=True)
class ServiceFilters:
    """
    Service listing filters.

    search: case-insensitive substring of name or description.
    is_active / allow_original_icon: exact match when set.
    """

    search: str | None = None
    is_active: bool | None = None
    allow_original_icon: bool | None = None


@dataclass(frozen=True)
class IconFilters:
    search: str | None = None
    service_id: UUID | None = None
    style: IconStyle | None = None
    color_scheme: IconColorScheme | None = None
    is_active: bool | None = None


@dataclass(frozen=True)
class LinkFilters:
    search: str | None = None
    service_id: UUID | None = None
    is_active: bool | None = None
    use_original_icon: bool | None = None


# --- Ordering ---

OrderCollection = Literal["services", "icons", "user_links"]


@dataclass(frozen=True)
class OrderScope:
    """A collection sharing one sort-order space."""

    collection: OrderCollection
    owner_id: UUID | None = None

    @classmethod
    def services(cls) -> OrderScope:
        return cls("services")

    @classmethod
    def icons(cls, service_id: UUID) -> OrderScope:
        return cls("icons", service_id)

    @classmethod
    def user_links(cls, user_id: UUID) -> OrderScope:
        return cls("user_links", user_id)


@dataclass(frozen=True)
class OrderUpdate:
    id: UUID
    sort_order: int


# --- Input Models ---


@dataclass(frozen=True)
class NewIcon:
    """Icon metadata plus the stored file reference."""

    name: str
    service_id: UUID
    style: IconStyle
    color_scheme: IconColorScheme
    file_name: str
    file_path: str
    description: str | None = None
    uploaded_by: UUID | None = None


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


# --- Output Models ---


@dataclass
class ServiceListOutput:
    services: list[ServiceUsage]
    total: int


@dataclass
class ServiceDetailOutput:
    service: Service
    icons: list[Icon] = field(default_factory=list)


@dataclass
class IconListOutput:
    icons: list[IconUsage]
    total: int


@dataclass
class UserLinkListOutput:
    links: list[UserLinkView]
    total: int
