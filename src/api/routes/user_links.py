"""Owner routes for the links on a user's profile."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile

from src.api.deps import (
    enforce_mutation_limit,
    get_blob_store,
    get_current_principal,
    get_original_icon_upload_policy,
    get_user_link_ops,
)
from src.api.routes.admin_icons import read_upload
from src.api.schemas import (
    Envelope,
    ReorderData,
    UploadData,
    UserLinkListData,
    UserLinkResponse,
)
from src.components.links import (
    BlobStorePort,
    LinkFilters,
    UploadPolicy,
    UserLinkOperations,
    run_create_user_link,
    run_delete_user_link,
    run_list_user_links,
    run_reorder_user_links,
    run_update_user_link,
    run_upload_original_icon,
)
from src.domain.entities import Principal
from src.domain.errors import PermissionDeniedError
from src.domain.policy import assert_owner, can_read_user_links

router = APIRouter()


def require_owner(
    user_id: UUID,
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    assert_owner(principal.id, user_id, resource="profile")
    return principal


@router.get("", response_model=Envelope[UserLinkListData])
def list_user_links(
    user_id: UUID,
    search: str | None = Query(None),
    service_id: UUID | None = Query(None, alias="serviceId"),
    is_active: bool | None = Query(None, alias="isActive"),
    use_original_icon: bool | None = Query(None, alias="useOriginalIcon"),
    principal: Principal = Depends(get_current_principal),
    ops: UserLinkOperations = Depends(get_user_link_ops),
) -> Envelope[UserLinkListData]:
    """Links of one user. The owner or an administrator may read them."""
    if not can_read_user_links(principal, user_id):
        raise PermissionDeniedError("You cannot view these links")

    filters = LinkFilters(
        search=search,
        service_id=service_id,
        is_active=is_active,
        use_original_icon=use_original_icon,
    )
    result = run_list_user_links(user_id, ops, filters)
    return Envelope(
        data=UserLinkListData(
            links=[UserLinkResponse.from_entity(link) for link in result.links],
            total=result.total,
        )
    )


@router.post(
    "",
    response_model=Envelope[UserLinkResponse],
    status_code=201,
    dependencies=[Depends(enforce_mutation_limit)],
)
def create_user_link(
    user_id: UUID,
    payload: dict[str, Any] = Body(...),
    owner: Principal = Depends(require_owner),
    ops: UserLinkOperations = Depends(get_user_link_ops),
) -> Envelope[UserLinkResponse]:
    link = run_create_user_link(owner.id, payload, ops)
    return Envelope(data=UserLinkResponse.from_entity(link), message="Link created")


@router.post(
    "/original-icon",
    response_model=Envelope[UploadData],
    status_code=201,
    dependencies=[Depends(enforce_mutation_limit)],
)
def upload_original_icon(
    user_id: UUID,
    file: UploadFile = File(...),
    owner: Principal = Depends(require_owner),
    store: BlobStorePort = Depends(get_blob_store),
    policy: UploadPolicy = Depends(get_original_icon_upload_policy),
) -> Envelope[UploadData]:
    """Store the owner's own SVG; the returned url goes into originalIconUrl."""
    path = run_upload_original_icon(owner.id, read_upload(file, policy), store, policy)
    return Envelope(data=UploadData(url=f"/api/files/{path}"), message="Icon uploaded")


# Declared before /{link_id} so "reorder" is not parsed as an id.
@router.patch(
    "/reorder",
    response_model=Envelope[ReorderData],
    dependencies=[Depends(enforce_mutation_limit)],
)
def reorder_user_links(
    user_id: UUID,
    payload: dict[str, Any] = Body(...),
    owner: Principal = Depends(require_owner),
    ops: UserLinkOperations = Depends(get_user_link_ops),
) -> Envelope[ReorderData]:
    count = run_reorder_user_links(owner.id, payload, ops)
    return Envelope(data=ReorderData(updated=count), message="Link order updated")


@router.patch(
    "/{link_id}",
    response_model=Envelope[UserLinkResponse],
    dependencies=[Depends(enforce_mutation_limit)],
)
def update_user_link(
    user_id: UUID,
    link_id: UUID,
    payload: dict[str, Any] = Body(...),
    owner: Principal = Depends(require_owner),
    ops: UserLinkOperations = Depends(get_user_link_ops),
) -> Envelope[UserLinkResponse]:
    link = run_update_user_link(link_id, owner.id, payload, ops)
    return Envelope(data=UserLinkResponse.from_entity(link), message="Link updated")


@router.delete(
    "/{link_id}",
    response_model=Envelope[None],
    dependencies=[Depends(enforce_mutation_limit)],
)
def delete_user_link(
    user_id: UUID,
    link_id: UUID,
    owner: Principal = Depends(require_owner),
    ops: UserLinkOperations = Depends(get_user_link_ops),
) -> Envelope[None]:
    run_delete_user_link(link_id, owner.id, ops)
    return Envelope(message="Link deleted")
