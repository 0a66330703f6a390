"""
Response shapes for the link catalog API.

Every body is an envelope: {success, data?, message?} on success and
{success: false, error, errors?} on failure. Field names are camelCase.
"""

from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.domain.entities import (
    Icon,
    IconColorScheme,
    IconStyle,
    IconUsage,
    Service,
    ServiceUsage,
    UserLink,
)

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Envelopes ---
class Envelope(ApiModel, Generic[T]):
    success: bool = True
    data: T | None = None
    message: str | None = None


class FieldErrorModel(ApiModel):
    field: str | None = None
    code: str
    message: str


class ErrorEnvelope(ApiModel):
    success: bool = False
    error: str
    errors: list[FieldErrorModel] | None = None


# --- Services ---
class ServiceResponse(ApiModel):
    id: UUID
    name: str
    slug: str
    description: str | None
    base_url: str | None
    allow_original_icon: bool
    is_active: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, service: Service) -> "ServiceResponse":
        return cls.model_validate(service.model_dump())


class ServiceSummaryResponse(ServiceResponse):
    icon_count: int
    link_count: int

    @classmethod
    def from_usage(cls, usage: ServiceUsage) -> "ServiceSummaryResponse":
        return cls.model_validate(
            {
                **usage.service.model_dump(),
                "icon_count": usage.icon_count,
                "link_count": usage.link_count,
            }
        )


class ServiceListData(ApiModel):
    services: list[ServiceSummaryResponse]
    total: int


# --- Icons ---
class IconResponse(ApiModel):
    id: UUID
    service_id: UUID
    name: str
    file_name: str
    file_path: str
    style: IconStyle
    color_scheme: IconColorScheme
    description: str | None
    is_active: bool
    sort_order: int
    uploaded_by: UUID | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, icon: Icon) -> "IconResponse":
        return cls.model_validate(icon.model_dump())


class IconSummaryResponse(IconResponse):
    service_name: str | None
    service_slug: str | None
    link_count: int

    @classmethod
    def from_usage(cls, usage: IconUsage) -> "IconSummaryResponse":
        return cls.model_validate(
            {
                **usage.icon.model_dump(),
                "service_name": usage.service_name,
                "service_slug": usage.service_slug,
                "link_count": usage.link_count,
            }
        )


class IconListData(ApiModel):
    icons: list[IconSummaryResponse]
    total: int


class ServiceIconsData(ApiModel):
    icons: list[IconResponse]
    total: int


class ServiceDetailData(ApiModel):
    service: ServiceResponse
    icons: list[IconResponse]


# --- User links ---
class LinkServiceSummary(ApiModel):
    id: UUID
    name: str
    slug: str
    description: str | None
    base_url: str | None
    allow_original_icon: bool


class LinkIconSummary(ApiModel):
    id: UUID
    name: str
    file_path: str
    style: IconStyle
    color_scheme: IconColorScheme


class UserLinkResponse(ApiModel):
    id: UUID
    user_id: UUID
    service_id: UUID
    url: str
    title: str | None
    description: str | None
    sort_order: int
    is_active: bool
    use_original_icon: bool
    original_icon_url: str | None
    icon_id: UUID | None
    created_at: datetime
    updated_at: datetime
    service: LinkServiceSummary | None = None
    icon: LinkIconSummary | None = None

    @classmethod
    def from_entity(cls, link: UserLink) -> "UserLinkResponse":
        # A UserLinkView dumps its service and icon; extra catalog fields are dropped
        return cls.model_validate(link.model_dump())


class UserLinkListData(ApiModel):
    links: list[UserLinkResponse]
    total: int


# --- Misc ---
class ReorderData(ApiModel):
    updated: int


class UploadData(ApiModel):
    url: str
