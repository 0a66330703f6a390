import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError

from src.adapters.clock import SystemClock
from src.adapters.fs.filestore import FileSystemBlobStore
from src.adapters.sqlite.repos import (
    SQLiteIconRepo,
    SQLiteServiceRepo,
    SQLiteSortOrderStore,
    SQLiteUserLinkRepo,
)
from src.api.auth_utils import DEV_SECRET_KEY, decode_access_token
from src.app_shell.rate_limit import RateLimiter
from src.components.links import (
    IconOperations,
    LinkServiceOperations,
    OrderingService,
    UploadPolicy,
    UserLinkOperations,
)
from src.domain.entities import Principal
from src.domain.errors import AuthenticationRequiredError
from src.domain.policy import require_admin
from src.rules.loader import load_rules
from src.rules.models import Rules, UploadRule


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ALTEE_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "altee.db")
        self.blob_dir = self.data_dir / "blobs"
        self.rules_path = Path(os.environ.get("ALTEE_RULES_PATH", self.base_dir / "rules.yaml"))
        self.secret_key = os.environ.get("ALTEE_SECRET_KEY", DEV_SECRET_KEY)


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules_cached(rules_path: Path) -> Rules:
    return load_rules(rules_path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules_cached(settings.rules_path)


# --- Repos ---
def get_service_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteServiceRepo:
    return SQLiteServiceRepo(settings.db_path, rules.database.busy_timeout_seconds)


def get_icon_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteIconRepo:
    return SQLiteIconRepo(settings.db_path, rules.database.busy_timeout_seconds)


def get_user_link_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteUserLinkRepo:
    return SQLiteUserLinkRepo(settings.db_path, rules.database.busy_timeout_seconds)


def get_sort_order_store(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteSortOrderStore:
    return SQLiteSortOrderStore(settings.db_path, rules.database.busy_timeout_seconds)


def get_blob_store(settings: Settings = Depends(get_settings)) -> FileSystemBlobStore:
    return FileSystemBlobStore(settings.blob_dir)


def get_clock() -> SystemClock:
    return SystemClock()


# --- Component Services ---
def get_ordering(store: SQLiteSortOrderStore = Depends(get_sort_order_store)) -> OrderingService:
    return OrderingService(store)


def get_service_ops(
    services: SQLiteServiceRepo = Depends(get_service_repo),
    icons: SQLiteIconRepo = Depends(get_icon_repo),
    links: SQLiteUserLinkRepo = Depends(get_user_link_repo),
    ordering: OrderingService = Depends(get_ordering),
    clock: SystemClock = Depends(get_clock),
) -> LinkServiceOperations:
    return LinkServiceOperations(services, icons, links, ordering, clock=clock)


def get_icon_ops(
    services: SQLiteServiceRepo = Depends(get_service_repo),
    icons: SQLiteIconRepo = Depends(get_icon_repo),
    links: SQLiteUserLinkRepo = Depends(get_user_link_repo),
    ordering: OrderingService = Depends(get_ordering),
    clock: SystemClock = Depends(get_clock),
) -> IconOperations:
    return IconOperations(services, icons, links, ordering, clock=clock)


def get_user_link_ops(
    services: SQLiteServiceRepo = Depends(get_service_repo),
    icons: SQLiteIconRepo = Depends(get_icon_repo),
    links: SQLiteUserLinkRepo = Depends(get_user_link_repo),
    ordering: OrderingService = Depends(get_ordering),
    clock: SystemClock = Depends(get_clock),
) -> UserLinkOperations:
    return UserLinkOperations(services, icons, links, ordering, clock=clock)


# --- Upload policies ---
def _policy_from_rule(rule: UploadRule) -> UploadPolicy:
    return UploadPolicy(
        max_bytes=rule.max_upload_bytes,
        allowed_mime_types=tuple(rule.allowlist_mime_types),
        allowed_extensions=tuple(ext.lower() for ext in rule.allowlist_extensions),
    )


def get_icon_upload_policy(rules: Rules = Depends(get_rules)) -> UploadPolicy:
    return _policy_from_rule(rules.uploads.icon)


def get_original_icon_upload_policy(rules: Rules = Depends(get_rules)) -> UploadPolicy:
    return _policy_from_rule(rules.uploads.original_icon)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_current_principal(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    settings: Settings = Depends(get_settings),
) -> Principal:
    # 1. Cookie first (HttpOnly), then the Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token:
        token = cookie_token.removeprefix("Bearer ")

    if not token:
        raise AuthenticationRequiredError()

    # 2. Decode
    payload = decode_access_token(token, settings.secret_key)
    if not payload:
        raise AuthenticationRequiredError("Invalid or expired token")

    # 3. Principal from claims
    try:
        return Principal(id=UUID(payload["sub"]), role=payload.get("role", "user"))
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise AuthenticationRequiredError("Invalid token payload") from e


def get_admin_principal(principal: Principal = Depends(get_current_principal)) -> Principal:
    return require_admin(principal)


# --- Rate limiting ---
def get_rate_limiter(request: Request, rules: Rules = Depends(get_rules)) -> RateLimiter:
    """One limiter per application, created on first use."""
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = RateLimiter(rules.rate_limit)
        request.app.state.rate_limiter = limiter
    return limiter


def enforce_mutation_limit(
    principal: Principal = Depends(get_current_principal),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    limiter.check_mutation(str(principal.id))
