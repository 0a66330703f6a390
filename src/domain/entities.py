from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["admin", "user"]
IconStyle = Literal["FILLED", "OUTLINE", "MINIMAL", "GRADIENT", "THREE_D"]
IconColorScheme = Literal["ORIGINAL", "MONOCHROME", "WHITE", "BLACK", "CUSTOM"]

ICON_STYLES: tuple[IconStyle, ...] = ("FILLED", "OUTLINE", "MINIMAL", "GRADIENT", "THREE_D")
ICON_COLOR_SCHEMES: tuple[IconColorScheme, ...] = (
    "ORIGINAL",
    "MONOCHROME",
    "WHITE",
    "BLACK",
    "CUSTOM",
)


def utc_now() -> datetime:
    return datetime.now(UTC)


# --- Identity ---

class Principal(BaseModel):
    """Authenticated caller, as supplied by the identity provider."""

    id: UUID
    role: RoleType = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# --- Catalog ---

class Service(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    description: str | None = None
    base_url: str | None = None
    allow_original_icon: bool = True
    is_active: bool = True
    sort_order: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Icon(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    service_id: UUID
    name: str
    file_name: str
    file_path: str
    style: IconStyle
    color_scheme: IconColorScheme
    description: str | None = None
    is_active: bool = True
    sort_order: int = 0
    uploaded_by: UUID | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# --- User links ---

class UserLink(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    service_id: UUID
    url: str
    title: str | None = None
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True
    use_original_icon: bool = False
    original_icon_url: str | None = None
    icon_id: UUID | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# --- Read models ---

class ServiceUsage(BaseModel):
    """Service with the number of icons and user links that reference it."""

    service: Service
    icon_count: int = 0
    link_count: int = 0


class IconUsage(BaseModel):
    icon: Icon
    service_name: str | None = None
    service_slug: str | None = None
    link_count: int = 0


class UserLinkView(UserLink):
    """A user link with the service and icon it points at, for profile rendering."""

    service: Service | None = None
    icon: Icon | None = None
