"""
Links component - service, icon and user link catalog.

Shell Layer - validates untrusted payloads, calls the gateway and moves
files in and out of blob storage. Failures raise LinkCatalogError.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import Any, TypeVar
from uuid import UUID, uuid4

from src.domain.entities import Icon, Service, UserLinkView

from ._impl import IconOperations, LinkServiceOperations, UserLinkOperations
from ._validation import (
    ICON_UPLOAD_POLICY,
    ORIGINAL_ICON_UPLOAD_POLICY,
    UploadPolicy,
    validate_icon_payload,
    validate_icon_patch,
    validate_reorder_payload,
    validate_service_patch,
    validate_service_payload,
    validate_upload_file,
    validate_user_link_payload,
)
from .models import (
    CatalogValidationError,
    FieldError,
    IconFilters,
    IconListOutput,
    LinkFilters,
    NewIcon,
    ServiceDetailOutput,
    ServiceFilters,
    ServiceListOutput,
    UploadedFile,
    UserLinkListOutput,
)
from .ports import BlobStorePort

logger = logging.getLogger(__name__)

T = TypeVar("T")

ICON_PREFIX = "icons/services"
USER_ICON_PREFIX = "user-icons"


def _require_valid(result: tuple[T | None, list[FieldError]]) -> T:
    payload, errors = result
    if errors or payload is None:
        raise CatalogValidationError(errors)
    return payload


def _blob_name(prefix: str, stem: str, filename: str) -> str:
    extension = PurePosixPath(filename).suffix.lower()
    return f"{prefix}/{stem}-{uuid4().hex}{extension}"


# --- Services ---


def run_list_services(
    ops: LinkServiceOperations,
    filters: ServiceFilters | None = None,
    active_only: bool = False,
) -> ServiceListOutput:
    """List services. active_only overrides any is_active filter."""
    filters = filters or ServiceFilters()
    if active_only:
        filters = ServiceFilters(
            search=filters.search,
            is_active=True,
            allow_original_icon=filters.allow_original_icon,
        )
    services = ops.get_services(filters)
    return ServiceListOutput(services=services, total=len(services))


def run_get_service(service_id: UUID, ops: LinkServiceOperations) -> ServiceDetailOutput:
    service, icons = ops.get_service_by_id(service_id)
    return ServiceDetailOutput(service=service, icons=icons)


def run_create_service(payload: Mapping[str, Any], ops: LinkServiceOperations) -> Service:
    return ops.create_service(_require_valid(validate_service_payload(payload)))


def run_update_service(
    service_id: UUID, payload: Mapping[str, Any], ops: LinkServiceOperations
) -> Service:
    return ops.update_service(service_id, _require_valid(validate_service_patch(payload)))


def run_delete_service(service_id: UUID, ops: LinkServiceOperations) -> None:
    ops.delete_service(service_id)


def run_reorder_services(payload: Mapping[str, Any], ops: LinkServiceOperations) -> int:
    updates = _require_valid(validate_reorder_payload(payload)).to_updates()
    ops.reorder_services(updates)
    return len(updates)


# --- Icons ---


def run_list_icons(ops: IconOperations, filters: IconFilters | None = None) -> IconListOutput:
    icons = ops.get_icons(filters)
    return IconListOutput(icons=icons, total=len(icons))


def run_list_service_icons(
    service_id: UUID, ops: IconOperations, include_inactive: bool = False
) -> list[Icon]:
    return ops.get_icons_by_service(service_id, include_inactive=include_inactive)


def run_upload_icon(
    fields: Mapping[str, Any],
    file: UploadedFile,
    uploaded_by: UUID,
    ops: IconOperations,
    store: BlobStorePort,
    policy: UploadPolicy = ICON_UPLOAD_POLICY,
) -> Icon:
    """Validate metadata and file, store the file, then record the icon."""
    meta, errors = validate_icon_payload(fields)
    errors = errors + validate_upload_file(file, policy)
    if errors or meta is None:
        raise CatalogValidationError(errors)

    file_path = store.save(_blob_name(ICON_PREFIX, str(meta.service_id), file.filename), file.data)
    try:
        return ops.create_icon(
            NewIcon(
                name=meta.name,
                service_id=meta.service_id,
                style=meta.style,
                color_scheme=meta.color_scheme,
                description=meta.description,
                file_name=PurePosixPath(file_path).name,
                file_path=file_path,
                uploaded_by=uploaded_by,
            )
        )
    except Exception:
        store.delete(file_path)
        raise


def run_update_icon(icon_id: UUID, payload: Mapping[str, Any], ops: IconOperations) -> Icon:
    return ops.update_icon(icon_id, _require_valid(validate_icon_patch(payload)))


def run_delete_icon(icon_id: UUID, ops: IconOperations, store: BlobStorePort) -> None:
    icon = ops.delete_icon(icon_id)
    try:
        store.delete(icon.file_path)
    except OSError:
        logger.warning("Icon %s removed but file %s could not be deleted", icon_id, icon.file_path)


def run_reorder_icons(service_id: UUID, payload: Mapping[str, Any], ops: IconOperations) -> int:
    updates = _require_valid(validate_reorder_payload(payload)).to_updates()
    ops.reorder_icons(service_id, updates)
    return len(updates)


# --- User Links ---


def run_list_user_links(
    user_id: UUID, ops: UserLinkOperations, filters: LinkFilters | None = None
) -> UserLinkListOutput:
    links = ops.get_user_links(user_id, filters)
    return UserLinkListOutput(links=links, total=len(links))


def run_create_user_link(
    user_id: UUID, payload: Mapping[str, Any], ops: UserLinkOperations
) -> UserLinkView:
    return ops.create_user_link(user_id, _require_valid(validate_user_link_payload(payload)))


def run_update_user_link(
    link_id: UUID, user_id: UUID, payload: Mapping[str, Any], ops: UserLinkOperations
) -> UserLinkView:
    """The gateway checks ownership before it validates the payload."""
    return ops.update_user_link(link_id, user_id, payload)


def run_delete_user_link(link_id: UUID, user_id: UUID, ops: UserLinkOperations) -> None:
    ops.delete_user_link(link_id, user_id)


def run_reorder_user_links(
    user_id: UUID, payload: Mapping[str, Any], ops: UserLinkOperations
) -> int:
    updates = _require_valid(validate_reorder_payload(payload)).to_updates()
    ops.reorder_user_links(user_id, updates)
    return len(updates)


def run_upload_original_icon(
    user_id: UUID,
    file: UploadedFile,
    store: BlobStorePort,
    policy: UploadPolicy = ORIGINAL_ICON_UPLOAD_POLICY,
) -> str:
    """Store a user's own SVG icon and return its reference."""
    errors = validate_upload_file(file, policy)
    if errors:
        raise CatalogValidationError(errors)
    name = _blob_name(f"{USER_ICON_PREFIX}/{user_id}", "original", file.filename)
    return store.save(name, file.data)
