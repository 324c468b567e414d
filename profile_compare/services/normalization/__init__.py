"""规范化引擎: 原始 CRM 权限记录 -> CanonicalProfile."""

from profile_compare.services.normalization.entity_resolver import EntityResolver, ResolvableEntity
from profile_compare.services.normalization.orchestrator import PermissionSetNormalizer, ProfileNormalizer
from profile_compare.services.normalization.permission_grouper import (
    OwnerResolution,
    PermissionBundle,
    RawRecordSets,
    ResolvedNames,
    group_permissions,
)
from profile_compare.services.normalization.profile_builder import (
    build_canonical_profile,
    derive_field_name,
    display_name_for_permission_set,
)

__all__ = [
    "EntityResolver",
    "OwnerResolution",
    "PermissionBundle",
    "PermissionSetNormalizer",
    "ProfileNormalizer",
    "RawRecordSets",
    "ResolvableEntity",
    "ResolvedNames",
    "build_canonical_profile",
    "derive_field_name",
    "display_name_for_permission_set",
    "group_permissions",
]
