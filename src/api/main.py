import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.api.schemas import ErrorEnvelope, FieldErrorModel
from src.app_shell.config import ConfigError, validate_ops_rules
from src.app_shell.rate_limit import RateLimiter
from src.domain.errors import (
    CatalogValidationError,
    ErrorKind,
    LinkCatalogError,
    RateLimitedError,
)
from src.rules.loader import load_rules

logger = logging.getLogger(__name__)

# Every ErrorKind has exactly one status. Anything that is not a
# LinkCatalogError is unexpected and becomes a 500.
ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.DUPLICATE: 400,
    ErrorKind.IN_USE: 400,
    ErrorKind.INVALID_REFERENCE: 400,
    ErrorKind.AUTHENTICATION_REQUIRED: 401,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
}

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    settings = app.dependency_overrides.get(get_settings, get_settings)()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        SQLiteMigrator(settings.db_path).run_migrations()
    except (FileNotFoundError, ValueError, ConfigError, RuntimeError) as e:
        logger.critical("Startup failed: %s", e)
        raise

    app.state.rate_limiter = RateLimiter(rules.rate_limit)
    logger.info("Altee link catalog ready (db %s)", settings.db_path)
    yield


app = FastAPI(
    title="Altee Link Catalog API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# --- Error envelopes ---
def error_response(
    status_code: int,
    message: str,
    errors: list[FieldErrorModel] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorEnvelope(error=message, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True, exclude_none=True)),
        headers=headers,
    )


@app.exception_handler(LinkCatalogError)
async def handle_catalog_error(request: Request, exc: LinkCatalogError) -> JSONResponse:
    status_code = ERROR_STATUS[exc.kind]
    errors = None
    headers = None

    if isinstance(exc, CatalogValidationError):
        errors = [
            FieldErrorModel(field=e.field, code=e.code, message=e.message) for e in exc.errors
        ]
    elif isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}

    level = logging.WARNING if status_code in (401, 403, 429) else logging.INFO
    logger.log(level, "%s %s -> %d %s: %s", request.method, request.url.path,
               status_code, exc.kind.value, exc.message)
    return error_response(status_code, exc.message, errors, headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies, path ids and query values share the 400 validation envelope."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(
            FieldErrorModel(
                field=".".join(loc) or None,
                code=err.get("type", "invalid"),
                message=err.get("msg", "Invalid value"),
            )
        )
    return error_response(400, "Validation failed", errors)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, UNEXPECTED_ERROR_MESSAGE)


# --- Routers ---
from src.api.routes import admin_icons, admin_services, catalog, user_links  # noqa: E402

app.include_router(admin_services.router, prefix="/api/admin/services", tags=["Admin Services"])
app.include_router(admin_icons.router, prefix="/api/admin", tags=["Admin Icons"])
app.include_router(catalog.router, prefix="/api", tags=["Catalog"])
app.include_router(
    user_links.router, prefix="/api/users/{user_id}/links", tags=["User Links"]
)


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok"}
