"""规范化文档构造辅助."""

from __future__ import annotations

from typing import Any

from profile_compare.services.normalization.profile_builder import default_object_permissions
from profile_compare.types import CanonicalProfile


def make_profile(entity_id: str, display_name: str | None = None, **overrides: Any) -> CanonicalProfile:
    """构造一份空文档, 再用 ``overrides`` 覆盖指定键."""
    profile: CanonicalProfile = {
        "id": entity_id,
        "displayName": display_name or entity_id,
        "objects": {},
        "systemPermissions": {},
        "apexClasses": [],
        "visualforcePages": [],
        "lightningPages": [],
        "recordTypes": [],
        "tabVisibilities": {},
        "appVisibilities": {},
    }
    profile.update(overrides)  # type: ignore[typeddict-item]
    return profile


def object_access(fields: dict[str, dict[str, bool]] | None = None, **flags: bool) -> dict[str, Any]:
    permissions = dict(default_object_permissions())
    permissions.update(flags)
    return {"permissions": permissions, "fields": dict(fields or {})}


__all__ = ["make_profile", "object_access"]
