"""Admin routes for service icons."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile

from src.api.deps import (
    enforce_mutation_limit,
    get_admin_principal,
    get_blob_store,
    get_icon_ops,
    get_icon_upload_policy,
)
from src.api.schemas import (
    Envelope,
    IconListData,
    IconResponse,
    IconSummaryResponse,
    ReorderData,
    ServiceIconsData,
)
from src.components.links import (
    BlobStorePort,
    IconFilters,
    IconOperations,
    UploadedFile,
    UploadPolicy,
    run_delete_icon,
    run_list_icons,
    run_list_service_icons,
    run_reorder_icons,
    run_update_icon,
    run_upload_icon,
)
from src.domain.entities import IconColorScheme, IconStyle, Principal

router = APIRouter()


def read_upload(file: UploadFile, policy: UploadPolicy) -> UploadedFile:
    """Read at most one byte past the limit so oversize files are still rejected."""
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        data=file.file.read(policy.max_bytes + 1),
    )


@router.get("/icons", response_model=Envelope[IconListData])
def list_icons(
    search: str | None = Query(None),
    service_id: UUID | None = Query(None, alias="serviceId"),
    style: IconStyle | None = Query(None),
    color_scheme: IconColorScheme | None = Query(None, alias="colorScheme"),
    is_active: bool | None = Query(None, alias="isActive"),
    admin: Principal = Depends(get_admin_principal),
    ops: IconOperations = Depends(get_icon_ops),
) -> Envelope[IconListData]:
    filters = IconFilters(
        search=search,
        service_id=service_id,
        style=style,
        color_scheme=color_scheme,
        is_active=is_active,
    )
    result = run_list_icons(ops, filters)
    return Envelope(
        data=IconListData(
            icons=[IconSummaryResponse.from_usage(u) for u in result.icons],
            total=result.total,
        )
    )


@router.post(
    "/icons",
    response_model=Envelope[IconResponse],
    status_code=201,
    dependencies=[Depends(enforce_mutation_limit)],
)
def upload_icon(
    file: UploadFile = File(...),
    name: str | None = Form(None),
    service_id: str | None = Form(None, alias="serviceId"),
    style: str | None = Form(None),
    color_scheme: str | None = Form(None, alias="colorScheme"),
    description: str | None = Form(None),
    admin: Principal = Depends(get_admin_principal),
    ops: IconOperations = Depends(get_icon_ops),
    store: BlobStorePort = Depends(get_blob_store),
    policy: UploadPolicy = Depends(get_icon_upload_policy),
) -> Envelope[IconResponse]:
    """Upload an icon file with its metadata (multipart form)."""
    submitted = {
        "name": name,
        "serviceId": service_id,
        "style": style,
        "colorScheme": color_scheme,
        "description": description,
    }
    fields = {k: v for k, v in submitted.items() if v is not None}
    icon = run_upload_icon(fields, read_upload(file, policy), admin.id, ops, store, policy)
    return Envelope(data=IconResponse.from_entity(icon), message="Icon uploaded")


@router.patch(
    "/icons/{icon_id}",
    response_model=Envelope[IconResponse],
    dependencies=[Depends(enforce_mutation_limit)],
)
def update_icon(
    icon_id: UUID,
    payload: dict[str, Any] = Body(...),
    admin: Principal = Depends(get_admin_principal),
    ops: IconOperations = Depends(get_icon_ops),
) -> Envelope[IconResponse]:
    icon = run_update_icon(icon_id, payload, ops)
    return Envelope(data=IconResponse.from_entity(icon), message="Icon updated")


@router.delete(
    "/icons/{icon_id}",
    response_model=Envelope[None],
    dependencies=[Depends(enforce_mutation_limit)],
)
def delete_icon(
    icon_id: UUID,
    admin: Principal = Depends(get_admin_principal),
    ops: IconOperations = Depends(get_icon_ops),
    store: BlobStorePort = Depends(get_blob_store),
) -> Envelope[None]:
    run_delete_icon(icon_id, ops, store)
    return Envelope(message="Icon deleted")


@router.get("/services/{service_id}/icons", response_model=Envelope[ServiceIconsData])
def list_service_icons(
    service_id: UUID,
    admin: Principal = Depends(get_admin_principal),
    ops: IconOperations = Depends(get_icon_ops),
) -> Envelope[ServiceIconsData]:
    """All icons of one service, inactive included."""
    icons = run_list_service_icons(service_id, ops, include_inactive=True)
    return Envelope(
        data=ServiceIconsData(icons=[IconResponse.from_entity(i) for i in icons], total=len(icons))
    )


@router.patch(
    "/services/{service_id}/icons/reorder",
    response_model=Envelope[ReorderData],
    dependencies=[Depends(enforce_mutation_limit)],
)
def reorder_icons(
    service_id: UUID,
    payload: dict[str, Any] = Body(...),
    admin: Principal = Depends(get_admin_principal),
    ops: IconOperations = Depends(get_icon_ops),
) -> Envelope[ReorderData]:
    count = run_reorder_icons(service_id, payload, ops)
    return Envelope(data=ReorderData(updated=count), message="Icon order updated")
