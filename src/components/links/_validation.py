"""
Payload validation for services, icons, user links and reorder requests.

Functional Core - pure functions. Each validator returns a tuple of
(payload, errors); payload is None when errors is non-empty. Uniqueness
and reference checks need the store and live in the gateway.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, TypeVar
from urllib.parse import urlparse
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.domain.entities import IconColorScheme, IconStyle

from .models import FieldError, OrderUpdate, UploadedFile

SLUG_PATTERN = r"^[a-z0-9-]+$"
ALLOWED_URL_SCHEMES = ("http", "https")
BLOCKED_URL_SCHEMES = ("javascript", "data", "vbscript", "file")
DANGEROUS_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')


def _check_url(value: str) -> str:
    parsed = urlparse(value)
    scheme = parsed.scheme.lower()
    if scheme in BLOCKED_URL_SCHEMES:
        raise ValueError(f"URL scheme '{scheme}' is not allowed")
    if scheme not in ALLOWED_URL_SCHEMES or not parsed.netloc:
        raise ValueError("URL must start with http:// or https://")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


# --- Services ---


class ServicePayload(_Payload):
    name: str = Field(min_length=1, max_length=50)
    slug: str = Field(min_length=1, max_length=30, pattern=SLUG_PATTERN)
    description: str | None = Field(default=None, max_length=200)
    base_url: str | None = None
    allow_original_icon: bool = True

    @field_validator("description", "base_url", mode="before")
    @classmethod
    def _empty_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("base_url")
    @classmethod
    def _valid_base_url(cls, value: str | None) -> str | None:
        return _check_url(value) if value is not None else None


class ServicePatch(ServicePayload):
    # Unset fields are left alone; explicit null is only accepted where the
    # column is nullable.
    name: str = Field(default=None, min_length=1, max_length=50)
    slug: str = Field(default=None, min_length=1, max_length=30, pattern=SLUG_PATTERN)
    allow_original_icon: bool = Field(default=None)
    is_active: bool = Field(default=None)
    sort_order: int = Field(default=None, ge=0)


# --- Icons ---


class IconPayload(_Payload):
    name: str = Field(min_length=1, max_length=100)
    service_id: UUID
    style: IconStyle
    color_scheme: IconColorScheme
    description: str | None = Field(default=None, max_length=200)

    @field_validator("description", mode="before")
    @classmethod
    def _empty_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class IconPatch(_Payload):
    name: str = Field(default=None, min_length=1, max_length=100)
    style: IconStyle = Field(default=None)
    color_scheme: IconColorScheme = Field(default=None)
    description: str | None = Field(default=None, max_length=200)
    is_active: bool = Field(default=None)
    sort_order: int = Field(default=None, ge=0)

    @field_validator("description", mode="before")
    @classmethod
    def _empty_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


# --- User links ---


class UserLinkPayload(_Payload):
    service_id: UUID
    url: str = Field(min_length=1, max_length=2048)
    title: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=200)
    use_original_icon: bool = False
    original_icon_url: str | None = Field(default=None, max_length=2048)
    icon_id: UUID | None = None

    @field_validator("title", "description", "original_icon_url", "icon_id", mode="before")
    @classmethod
    def _empty_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("url")
    @classmethod
    def _safe_url(cls, value: str) -> str:
        return _check_url(value)


class UserLinkPatch(_Payload):
    url: str = Field(default=None, min_length=1, max_length=2048)
    title: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=200)
    use_original_icon: bool = Field(default=None)
    original_icon_url: str | None = Field(default=None, max_length=2048)
    icon_id: UUID | None = None
    is_active: bool = Field(default=None)
    sort_order: int = Field(default=None, ge=0)

    @field_validator("title", "description", "original_icon_url", "icon_id", mode="before")
    @classmethod
    def _empty_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("url")
    @classmethod
    def _safe_url(cls, value: str) -> str:
        return _check_url(value)


# --- Reorder ---


class ReorderItem(_Payload):
    id: UUID
    sort_order: int = Field(ge=0, strict=True)


class ReorderPayload(_Payload):
    """
    Explicit pairs ({id, sortOrder}) under `links` or `items`, or bare
    `ids` whose list position becomes the sort order. Exactly one must be
    given.
    """

    links: list[ReorderItem] | None = None
    items: list[ReorderItem] | None = None
    ids: list[UUID] | None = None

    @model_validator(mode="after")
    def _one_non_empty_list(self) -> ReorderPayload:
        given = [entries for entries in (self.links, self.items, self.ids) if entries is not None]
        if len(given) > 1:
            raise ValueError("Provide only one of links, items or ids")
        if not given or not given[0]:
            raise ValueError("Reorder list must contain at least one entry")
        seen: set[UUID] = set()
        for entry_id in self._entry_ids():
            if entry_id in seen:
                raise ValueError(f"Duplicate id in reorder list: {entry_id}")
            seen.add(entry_id)
        return self

    def _pairs(self) -> list[ReorderItem] | None:
        return self.links if self.links is not None else self.items

    def _entry_ids(self) -> list[UUID]:
        pairs = self._pairs()
        if pairs is not None:
            return [item.id for item in pairs]
        return list(self.ids or [])

    def to_updates(self) -> list[OrderUpdate]:
        pairs = self._pairs()
        if pairs is not None:
            return [OrderUpdate(id=item.id, sort_order=item.sort_order) for item in pairs]
        ids = self.ids or []
        return [OrderUpdate(id=entry_id, sort_order=pos) for pos, entry_id in enumerate(ids)]


# --- Uploads ---


@dataclass(frozen=True)
class UploadPolicy:
    max_bytes: int
    allowed_mime_types: tuple[str, ...]
    allowed_extensions: tuple[str, ...]


ICON_UPLOAD_POLICY = UploadPolicy(
    max_bytes=2 * 1024 * 1024,
    allowed_mime_types=("image/svg+xml", "image/png", "image/jpeg", "image/webp"),
    allowed_extensions=(".svg", ".png", ".jpg", ".jpeg", ".webp"),
)

ORIGINAL_ICON_UPLOAD_POLICY = UploadPolicy(
    max_bytes=1 * 1024 * 1024,
    allowed_mime_types=("image/svg+xml",),
    allowed_extensions=(".svg",),
)


def validate_upload_file(file: UploadedFile, policy: UploadPolicy) -> list[FieldError]:
    """Check an uploaded file against a policy."""
    errors: list[FieldError] = []

    if not file.data:
        errors.append(FieldError(code="file_required", message="File is empty", field="file"))
        return errors

    if file.content_type not in policy.allowed_mime_types:
        errors.append(
            FieldError(
                code="file_type_not_allowed",
                message=f"Unsupported file type: {file.content_type}",
                field="file",
            )
        )

    if file.size > policy.max_bytes:
        errors.append(
            FieldError(
                code="file_too_large",
                message=f"File must be {policy.max_bytes} bytes or less",
                field="file",
            )
        )

    if not file.filename or DANGEROUS_FILENAME_CHARS.search(file.filename):
        errors.append(
            FieldError(
                code="file_name_invalid",
                message="File name contains invalid characters",
                field="file",
            )
        )
    elif PurePosixPath(file.filename).suffix.lower() not in policy.allowed_extensions:
        errors.append(
            FieldError(
                code="file_extension_not_allowed",
                message="File extension is not allowed",
                field="file",
            )
        )

    return errors


# --- Validation Functions ---

P = TypeVar("P", bound=_Payload)


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors(include_url=False):
        loc = ".".join(str(part) for part in err["loc"])
        errors.append(FieldError(code=err["type"], message=err["msg"], field=loc or None))
    return errors


def _validate(model: type[P], data: Any) -> tuple[P | None, list[FieldError]]:
    if not isinstance(data, Mapping):
        return None, [FieldError(code="invalid_payload", message="Payload must be an object")]
    try:
        return model.model_validate(dict(data)), []
    except ValidationError as exc:
        return None, _field_errors(exc)


def validate_service_payload(data: Any) -> tuple[ServicePayload | None, list[FieldError]]:
    """Validate a service creation payload. allowOriginalIcon defaults to True."""
    return _validate(ServicePayload, data)


def validate_service_patch(data: Any) -> tuple[ServicePatch | None, list[FieldError]]:
    return _validate(ServicePatch, data)


def validate_icon_payload(data: Any) -> tuple[IconPayload | None, list[FieldError]]:
    return _validate(IconPayload, data)


def validate_icon_patch(data: Any) -> tuple[IconPatch | None, list[FieldError]]:
    return _validate(IconPatch, data)


def validate_user_link_payload(data: Any) -> tuple[UserLinkPayload | None, list[FieldError]]:
    return _validate(UserLinkPayload, data)


def validate_user_link_patch(data: Any) -> tuple[UserLinkPatch | None, list[FieldError]]:
    """Validate a partial link update. An empty iconId becomes None."""
    return _validate(UserLinkPatch, data)


def validate_reorder_payload(data: Any) -> tuple[ReorderPayload | None, list[FieldError]]:
    """Validate a reorder request. An empty list is an error."""
    return _validate(ReorderPayload, data)
