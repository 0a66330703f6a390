"""Catalog routes for signed-in users, plus stored file serving."""

import mimetypes
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from src.adapters.fs.filestore import FileSystemBlobStore
from src.api.deps import get_blob_store, get_current_principal, get_icon_ops, get_service_ops
from src.api.schemas import (
    Envelope,
    IconResponse,
    ServiceDetailData,
    ServiceIconsData,
    ServiceListData,
    ServiceResponse,
    ServiceSummaryResponse,
)
from src.components.links import (
    IconOperations,
    LinkServiceOperations,
    ServiceFilters,
    run_get_service,
    run_list_service_icons,
    run_list_services,
)
from src.domain.entities import Principal
from src.domain.errors import NotFoundError

router = APIRouter()

CACHE_CONTROL_FILES = "public, max-age=86400"
# Uploaded SVGs may carry scripts; never let them run in our origin.
FILE_CSP = "default-src 'none'; style-src 'unsafe-inline'; sandbox"


@router.get("/services", response_model=Envelope[ServiceListData])
def list_services(
    search: str | None = Query(None),
    principal: Principal = Depends(get_current_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[ServiceListData]:
    """Active services for users; administrators see every service."""
    result = run_list_services(
        ops, ServiceFilters(search=search), active_only=not principal.is_admin
    )
    return Envelope(
        data=ServiceListData(
            services=[ServiceSummaryResponse.from_usage(u) for u in result.services],
            total=result.total,
        )
    )


@router.get("/services/{service_id}", response_model=Envelope[ServiceDetailData])
def get_service(
    service_id: UUID,
    principal: Principal = Depends(get_current_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[ServiceDetailData]:
    detail = run_get_service(service_id, ops)
    if not detail.service.is_active and not principal.is_admin:
        raise NotFoundError("Service", service_id)
    return Envelope(
        data=ServiceDetailData(
            service=ServiceResponse.from_entity(detail.service),
            icons=[IconResponse.from_entity(i) for i in detail.icons],
        )
    )


@router.get("/services/{service_id}/icons", response_model=Envelope[ServiceIconsData])
def list_service_icons(
    service_id: UUID,
    principal: Principal = Depends(get_current_principal),
    ops: IconOperations = Depends(get_icon_ops),
) -> Envelope[ServiceIconsData]:
    icons = run_list_service_icons(service_id, ops, include_inactive=principal.is_admin)
    return Envelope(
        data=ServiceIconsData(icons=[IconResponse.from_entity(i) for i in icons], total=len(icons))
    )


@router.get("/files/{path:path}")
def get_file(
    path: str,
    store: FileSystemBlobStore = Depends(get_blob_store),
) -> Response:
    """Serve a stored icon by its reference."""
    try:
        data = store.get(path)
    except (FileNotFoundError, ValueError) as e:
        raise NotFoundError("File", path) from e

    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return Response(
        content=data,
        media_type=media_type,
        headers={
            "Cache-Control": CACHE_CONTROL_FILES,
            "Content-Security-Policy": FILE_CSP,
            "X-Content-Type-Options": "nosniff",
        },
    )
