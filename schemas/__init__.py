"""Pydantic schema exports."""

from .catalog import (
    CatalogKind,
    CatalogItemCreate,
    CatalogItemUpdate,
    CatalogItemResponse,
    StatusSummary,
)
from .tracking import (
    EntityKind,
    CaseCreate,
    TestCreate,
    TrackedItemUpdate,
    TrackedItemResponse,
    TrackedItemListResponse,
    ProgressCreate,
    ProgressResponse,
    AttachmentResponse,
    UserSummary,
)
from .solutions import (
    SolutionCreate,
    SolutionUpdate,
    SolutionResponse,
    SolutionListResponse,
)
from .resources import (
    ResourceCreate,
    ResourceUpdate,
    ResourceResponse,
    ResourceListResponse,
    FolderCreate,
    FolderResponse,
    ShareSettingsUpdate,
    SharedResourceView,
)
from .audit import AuditEntryResponse, AuditFieldChange, AuditListResponse

__all__ = [
    "CatalogKind",
    "CatalogItemCreate",
    "CatalogItemUpdate",
    "CatalogItemResponse",
    "StatusSummary",
    "EntityKind",
    "CaseCreate",
    "TestCreate",
    "TrackedItemUpdate",
    "TrackedItemResponse",
    "TrackedItemListResponse",
    "ProgressCreate",
    "ProgressResponse",
    "AttachmentResponse",
    "UserSummary",
    "SolutionCreate",
    "SolutionUpdate",
    "SolutionResponse",
    "SolutionListResponse",
    "ResourceCreate",
    "ResourceUpdate",
    "ResourceResponse",
    "ResourceListResponse",
    "FolderCreate",
    "FolderResponse",
    "ShareSettingsUpdate",
    "SharedResourceView",
    "AuditEntryResponse",
    "AuditFieldChange",
    "AuditListResponse",
]
