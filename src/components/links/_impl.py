"""
Link catalog gateway - services, icons and user links.

Owns the integrity rules the store does not declare: name/slug uniqueness,
"in use" delete guards, icon/service consistency on links, and link
ownership. Business failures raise LinkCatalogError subclasses; anything
else propagates unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from src.domain.entities import (
    Icon,
    IconUsage,
    Service,
    ServiceUsage,
    UserLink,
    UserLinkView,
    utc_now,
)
from src.domain.policy import assert_owner
from src.ports.clock import ClockPort

from ._ordering import OrderingService
from ._validation import (
    IconPatch,
    ServicePatch,
    ServicePayload,
    UserLinkPatch,
    UserLinkPayload,
    validate_icon_patch,
    validate_service_patch,
    validate_user_link_patch,
)
from .models import (
    CatalogValidationError,
    DuplicateError,
    FieldError,
    IconFilters,
    InUseError,
    InvalidReferenceError,
    LinkFilters,
    NewIcon,
    NotFoundError,
    OrderScope,
    OrderUpdate,
    ServiceFilters,
)
from .ports import IconRepoPort, ServiceRepoPort, UserLinkRepoPort

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _coerce_patch(
    patch: T | Mapping[str, Any],
    patch_type: type[T],
    validator: Callable[[Any], tuple[T | None, list[FieldError]]],
) -> T:
    if isinstance(patch, patch_type):
        return patch
    validated, errors = validator(patch)
    if errors or validated is None:
        raise CatalogValidationError(errors)
    return validated


class _Clocked:
    _clock: ClockPort | None

    def _now(self) -> datetime:
        return self._clock.now() if self._clock is not None else utc_now()


# --- Services ---


class LinkServiceOperations(_Clocked):
    """Administrator-managed catalog of linkable services."""

    def __init__(
        self,
        services: ServiceRepoPort,
        icons: IconRepoPort,
        links: UserLinkRepoPort,
        ordering: OrderingService,
        clock: ClockPort | None = None,
    ) -> None:
        self._services = services
        self._icons = icons
        self._links = links
        self._ordering = ordering
        self._clock = clock

    def get_services(self, filters: ServiceFilters | None = None) -> list[ServiceUsage]:
        """Services matching filters, ordered by sort order, with usage counts."""
        services = self._services.list(filters or ServiceFilters())
        return [
            ServiceUsage(
                service=service,
                icon_count=self._icons.count_by_service(service.id),
                link_count=self._links.count_by_service(service.id),
            )
            for service in services
        ]

    def get_service(self, service_id: UUID) -> Service:
        service = self._services.get_by_id(service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    def get_service_by_id(self, service_id: UUID) -> tuple[Service, list[Icon]]:
        """Service plus its active icons."""
        service = self.get_service(service_id)
        icons = self._icons.list(IconFilters(service_id=service_id, is_active=True))
        return service, icons

    def _check_unique(
        self, name: str | None, slug: str | None, exclude_id: UUID | None = None
    ) -> None:
        for existing in self._services.find_by_name_or_slug(name, slug, exclude_id):
            if name is not None and existing.name == name:
                raise DuplicateError("name", name)
            if slug is not None and existing.slug == slug:
                raise DuplicateError("slug", slug)

    def create_service(self, payload: ServicePayload) -> Service:
        self._check_unique(payload.name, payload.slug)

        now = self._now()
        service = Service(
            name=payload.name,
            slug=payload.slug,
            description=payload.description,
            base_url=payload.base_url,
            allow_original_icon=payload.allow_original_icon,
            sort_order=self._ordering.next_sort_order(OrderScope.services()),
            created_at=now,
            updated_at=now,
        )
        saved = self._services.save(service)
        logger.info("Created service %s (%s)", saved.slug, saved.id)
        return saved

    def update_service(
        self, service_id: UUID, patch: ServicePatch | Mapping[str, Any]
    ) -> Service:
        patch = _coerce_patch(patch, ServicePatch, validate_service_patch)
        service = self.get_service(service_id)
        changes = patch.model_dump(exclude_unset=True)

        new_name = changes.get("name")
        new_slug = changes.get("slug")
        self._check_unique(
            new_name if new_name != service.name else None,
            new_slug if new_slug != service.slug else None,
            exclude_id=service_id,
        )

        updated = service.model_copy(update={**changes, "updated_at": self._now()})
        return self._services.save(updated)

    def delete_service(self, service_id: UUID) -> None:
        self.get_service(service_id)

        references = self._links.count_by_service(service_id) + self._icons.count_by_service(
            service_id
        )
        if references > 0:
            logger.info("Refusing to delete service %s: %d references", service_id, references)
            raise InUseError("Service", service_id, references)

        self._services.delete(service_id)
        logger.info("Deleted service %s", service_id)

    def reorder_services(self, updates: Sequence[OrderUpdate]) -> None:
        self._ordering.reorder(OrderScope.services(), updates)


# --- Icons ---


class IconOperations(_Clocked):
    """Icons belong to exactly one service and are ordered within it."""

    def __init__(
        self,
        services: ServiceRepoPort,
        icons: IconRepoPort,
        links: UserLinkRepoPort,
        ordering: OrderingService,
        clock: ClockPort | None = None,
    ) -> None:
        self._services = services
        self._icons = icons
        self._links = links
        self._ordering = ordering
        self._clock = clock

    def get_icons(self, filters: IconFilters | None = None) -> list[IconUsage]:
        """Admin listing across services, ordered by service name then sort order."""
        icons = self._icons.list(filters or IconFilters())
        services: dict[UUID, Service | None] = {}
        rows: list[IconUsage] = []
        for icon in icons:
            if icon.service_id not in services:
                services[icon.service_id] = self._services.get_by_id(icon.service_id)
            service = services[icon.service_id]
            rows.append(
                IconUsage(
                    icon=icon,
                    service_name=service.name if service else None,
                    service_slug=service.slug if service else None,
                    link_count=self._links.count_by_icon(icon.id),
                )
            )
        rows.sort(key=lambda row: (row.service_name or "", row.icon.sort_order))
        return rows

    def get_icons_by_service(self, service_id: UUID, include_inactive: bool = False) -> list[Icon]:
        """
        Icons of one service. Non-admin callers only ever see active icons,
        and an inactive service is as absent for them as a missing one.
        """
        if not include_inactive:
            service = self._services.get_by_id(service_id)
            if service is None or not service.is_active:
                raise NotFoundError("Service", service_id)
        filters = IconFilters(service_id=service_id, is_active=None if include_inactive else True)
        return self._icons.list(filters)

    def get_icon(self, icon_id: UUID) -> Icon:
        icon = self._icons.get_by_id(icon_id)
        if icon is None:
            raise NotFoundError("Icon", icon_id)
        return icon

    def create_icon(self, new_icon: NewIcon) -> Icon:
        if self._services.get_by_id(new_icon.service_id) is None:
            raise InvalidReferenceError(f"Service {new_icon.service_id} does not exist")

        now = self._now()
        icon = Icon(
            service_id=new_icon.service_id,
            name=new_icon.name,
            file_name=new_icon.file_name,
            file_path=new_icon.file_path,
            style=new_icon.style,
            color_scheme=new_icon.color_scheme,
            description=new_icon.description,
            uploaded_by=new_icon.uploaded_by,
            sort_order=self._ordering.next_sort_order(OrderScope.icons(new_icon.service_id)),
            created_at=now,
            updated_at=now,
        )
        saved = self._icons.save(icon)
        logger.info("Created icon %s for service %s", saved.id, saved.service_id)
        return saved

    def update_icon(self, icon_id: UUID, patch: IconPatch | Mapping[str, Any]) -> Icon:
        patch = _coerce_patch(patch, IconPatch, validate_icon_patch)
        icon = self.get_icon(icon_id)
        changes = patch.model_dump(exclude_unset=True)
        updated = icon.model_copy(update={**changes, "updated_at": self._now()})
        return self._icons.save(updated)

    def delete_icon(self, icon_id: UUID) -> Icon:
        """Delete an unused icon. Returns the removed row so its file can be dropped."""
        icon = self.get_icon(icon_id)

        references = self._links.count_by_icon(icon_id)
        if references > 0:
            logger.info("Refusing to delete icon %s: %d links", icon_id, references)
            raise InUseError("Icon", icon_id, references)

        self._icons.delete(icon_id)
        logger.info("Deleted icon %s", icon_id)
        return icon

    def reorder_icons(self, service_id: UUID, updates: Sequence[OrderUpdate]) -> None:
        if self._services.get_by_id(service_id) is None:
            raise NotFoundError("Service", service_id)
        self._ordering.reorder(OrderScope.icons(service_id), updates)


# --- User Links ---


class UserLinkOperations(_Clocked):
    """Links on one user's profile. Every mutation re-checks ownership."""

    def __init__(
        self,
        services: ServiceRepoPort,
        icons: IconRepoPort,
        links: UserLinkRepoPort,
        ordering: OrderingService,
        clock: ClockPort | None = None,
    ) -> None:
        self._services = services
        self._icons = icons
        self._links = links
        self._ordering = ordering
        self._clock = clock

    def get_user_links(
        self, user_id: UUID, filters: LinkFilters | None = None
    ) -> list[UserLinkView]:
        """Links of one user, each with its service and icon embedded."""
        links = self._links.list_for_user(user_id, filters or LinkFilters())
        services: dict[UUID, Service | None] = {}
        icons: dict[UUID, Icon | None] = {}
        views: list[UserLinkView] = []
        for link in links:
            if link.service_id not in services:
                services[link.service_id] = self._services.get_by_id(link.service_id)
            if link.icon_id is not None and link.icon_id not in icons:
                icons[link.icon_id] = self._icons.get_by_id(link.icon_id)
            icon = icons.get(link.icon_id) if link.icon_id is not None else None
            views.append(self._view(link, services[link.service_id], icon))
        return views

    def _view(
        self, link: UserLink, service: Service | None = None, icon: Icon | None = None
    ) -> UserLinkView:
        if service is None:
            service = self._services.get_by_id(link.service_id)
        if icon is None and link.icon_id is not None:
            icon = self._icons.get_by_id(link.icon_id)
        return UserLinkView(**link.model_dump(), service=service, icon=icon)

    def _get_owned(self, link_id: UUID, user_id: UUID) -> UserLink:
        link = self._links.get_by_id(link_id)
        if link is None:
            raise NotFoundError("UserLink", link_id)
        assert_owner(user_id, link.user_id)
        return link

    def _check_references(
        self,
        service_id: UUID,
        icon_id: UUID | None,
        use_original_icon: bool,
    ) -> tuple[Service, Icon | None]:
        service = self._services.get_by_id(service_id)
        if service is None:
            raise InvalidReferenceError(f"Service {service_id} does not exist")
        if not service.is_active:
            raise InvalidReferenceError(f"Service '{service.slug}' is not available")
        if use_original_icon and not service.allow_original_icon:
            raise InvalidReferenceError(f"Service '{service.slug}' does not allow original icons")
        if icon_id is None:
            return service, None
        icon = self._icons.get_by_id(icon_id)
        if icon is None:
            raise InvalidReferenceError(f"Icon {icon_id} does not exist")
        if icon.service_id != service_id:
            raise InvalidReferenceError(
                f"Icon {icon_id} does not belong to service '{service.slug}'"
            )
        if not icon.is_active:
            raise InvalidReferenceError(f"Icon {icon_id} is not available")
        return service, icon

    def create_user_link(self, user_id: UUID, payload: UserLinkPayload) -> UserLinkView:
        service, icon = self._check_references(
            payload.service_id, payload.icon_id, payload.use_original_icon
        )

        now = self._now()
        link = UserLink(
            user_id=user_id,
            service_id=payload.service_id,
            url=payload.url,
            title=payload.title,
            description=payload.description,
            use_original_icon=payload.use_original_icon,
            original_icon_url=payload.original_icon_url,
            icon_id=payload.icon_id,
            sort_order=self._ordering.next_sort_order(OrderScope.user_links(user_id)),
            created_at=now,
            updated_at=now,
        )
        saved = self._links.save(link)
        logger.info("User %s created link %s", user_id, saved.id)
        return self._view(saved, service, icon)

    def update_user_link(
        self,
        link_id: UUID,
        user_id: UUID,
        patch: UserLinkPatch | Mapping[str, Any],
    ) -> UserLinkView:
        # Ownership first: a non-owner is refused whatever the payload
        link = self._get_owned(link_id, user_id)
        patch = _coerce_patch(patch, UserLinkPatch, validate_user_link_patch)
        changes = patch.model_dump(exclude_unset=True)

        # Clearing the icon needs no reference check
        if changes.get("icon_id") is not None or changes.get("use_original_icon"):
            self._check_references(
                link.service_id,
                changes.get("icon_id"),
                changes.get("use_original_icon", False),
            )

        updated = link.model_copy(update={**changes, "updated_at": self._now()})
        return self._view(self._links.save(updated))

    def delete_user_link(self, link_id: UUID, user_id: UUID) -> UserLink:
        link = self._get_owned(link_id, user_id)
        self._links.delete(link_id)
        logger.info("User %s deleted link %s", user_id, link_id)
        return link

    def reorder_user_links(self, user_id: UUID, updates: Sequence[OrderUpdate]) -> None:
        self._ordering.reorder(OrderScope.user_links(user_id), updates)
