"""Admin routes for the service catalog."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from src.api.deps import enforce_mutation_limit, get_admin_principal, get_service_ops
from src.api.schemas import (
    Envelope,
    IconResponse,
    ReorderData,
    ServiceDetailData,
    ServiceListData,
    ServiceResponse,
    ServiceSummaryResponse,
)
from src.components.links import (
    LinkServiceOperations,
    ServiceFilters,
    run_create_service,
    run_delete_service,
    run_get_service,
    run_list_services,
    run_reorder_services,
    run_update_service,
)
from src.domain.entities import Principal

router = APIRouter()


@router.get("", response_model=Envelope[ServiceListData])
def list_services(
    search: str | None = Query(None),
    is_active: bool | None = Query(None, alias="isActive"),
    allow_original_icon: bool | None = Query(None, alias="allowOriginalIcon"),
    admin: Principal = Depends(get_admin_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[ServiceListData]:
    """List all services, including inactive ones."""
    filters = ServiceFilters(
        search=search, is_active=is_active, allow_original_icon=allow_original_icon
    )
    result = run_list_services(ops, filters)
    return Envelope(
        data=ServiceListData(
            services=[ServiceSummaryResponse.from_usage(u) for u in result.services],
            total=result.total,
        )
    )


@router.post(
    "",
    response_model=Envelope[ServiceResponse],
    status_code=201,
    dependencies=[Depends(enforce_mutation_limit)],
)
def create_service(
    payload: dict[str, Any] = Body(...),
    admin: Principal = Depends(get_admin_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[ServiceResponse]:
    service = run_create_service(payload, ops)
    return Envelope(data=ServiceResponse.from_entity(service), message="Service created")


# Declared before /{service_id} so "reorder" is not parsed as an id.
@router.patch(
    "/reorder",
    response_model=Envelope[ReorderData],
    dependencies=[Depends(enforce_mutation_limit)],
)
def reorder_services(
    payload: dict[str, Any] = Body(...),
    admin: Principal = Depends(get_admin_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[ReorderData]:
    count = run_reorder_services(payload, ops)
    return Envelope(data=ReorderData(updated=count), message="Service order updated")


@router.get("/{service_id}", response_model=Envelope[ServiceDetailData])
def get_service(
    service_id: UUID,
    admin: Principal = Depends(get_admin_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[ServiceDetailData]:
    detail = run_get_service(service_id, ops)
    return Envelope(
        data=ServiceDetailData(
            service=ServiceResponse.from_entity(detail.service),
            icons=[IconResponse.from_entity(i) for i in detail.icons],
        )
    )


@router.patch(
    "/{service_id}",
    response_model=Envelope[ServiceResponse],
    dependencies=[Depends(enforce_mutation_limit)],
)
def update_service(
    service_id: UUID,
    payload: dict[str, Any] = Body(...),
    admin: Principal = Depends(get_admin_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[ServiceResponse]:
    service = run_update_service(service_id, payload, ops)
    return Envelope(data=ServiceResponse.from_entity(service), message="Service updated")


@router.delete(
    "/{service_id}",
    response_model=Envelope[None],
    dependencies=[Depends(enforce_mutation_limit)],
)
def delete_service(
    service_id: UUID,
    admin: Principal = Depends(get_admin_principal),
    ops: LinkServiceOperations = Depends(get_service_ops),
) -> Envelope[None]:
    run_delete_service(service_id, ops)
    return Envelope(message="Service deleted")
