"""
Links component - service catalog, icons and per-user links.

Validation, sort ordering and the persistence gateway for the link hub.
"""

from ._impl import IconOperations, LinkServiceOperations, UserLinkOperations
from ._ordering import OrderingService
from ._validation import (
    ICON_UPLOAD_POLICY,
    ORIGINAL_ICON_UPLOAD_POLICY,
    UploadPolicy,
    validate_icon_patch,
    validate_icon_payload,
    validate_reorder_payload,
    validate_service_patch,
    validate_service_payload,
    validate_upload_file,
    validate_user_link_patch,
    validate_user_link_payload,
)
from .component import (
    run_create_service,
    run_create_user_link,
    run_delete_icon,
    run_delete_service,
    run_delete_user_link,
    run_get_service,
    run_list_icons,
    run_list_service_icons,
    run_list_services,
    run_list_user_links,
    run_reorder_icons,
    run_reorder_services,
    run_reorder_user_links,
    run_update_icon,
    run_update_service,
    run_update_user_link,
    run_upload_icon,
    run_upload_original_icon,
)
from .models import (
    IconFilters,
    IconListOutput,
    LinkFilters,
    NewIcon,
    OrderScope,
    OrderUpdate,
    ServiceDetailOutput,
    ServiceFilters,
    ServiceListOutput,
    UploadedFile,
    UserLinkListOutput,
)
from .ports import (
    BlobStorePort,
    IconRepoPort,
    ServiceRepoPort,
    SortOrderStorePort,
    UserLinkRepoPort,
)

__all__ = [
    # Entry points
    "run_list_services",
    "run_get_service",
    "run_create_service",
    "run_update_service",
    "run_delete_service",
    "run_reorder_services",
    "run_list_icons",
    "run_list_service_icons",
    "run_upload_icon",
    "run_update_icon",
    "run_delete_icon",
    "run_reorder_icons",
    "run_list_user_links",
    "run_create_user_link",
    "run_update_user_link",
    "run_delete_user_link",
    "run_reorder_user_links",
    "run_upload_original_icon",
    # Gateway
    "LinkServiceOperations",
    "IconOperations",
    "UserLinkOperations",
    "OrderingService",
    # Validation
    "validate_service_payload",
    "validate_service_patch",
    "validate_icon_payload",
    "validate_icon_patch",
    "validate_user_link_payload",
    "validate_user_link_patch",
    "validate_reorder_payload",
    "validate_upload_file",
    "UploadPolicy",
    "ICON_UPLOAD_POLICY",
    "ORIGINAL_ICON_UPLOAD_POLICY",
    # Models
    "ServiceFilters",
    "IconFilters",
    "LinkFilters",
    "OrderScope",
    "OrderUpdate",
    "NewIcon",
    "UploadedFile",
    "ServiceListOutput",
    "ServiceDetailOutput",
    "IconListOutput",
    "UserLinkListOutput",
    # Ports
    "ServiceRepoPort",
    "IconRepoPort",
    "UserLinkRepoPort",
    "SortOrderStorePort",
    "BlobStorePort",
]
