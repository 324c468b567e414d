"""规范化文档构建: 单个 owner 的分组结果 -> CanonicalProfile."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from profile_compare.core.constants.permission_constants import (
    FIELD_PERMISSION_FIELDS,
    OBJECT_PERMISSION_FIELDS,
    PERMISSION_SET_DISPLAY_PREFIX,
    TabVisibility,
)

if TYPE_CHECKING:
    from profile_compare.services.normalization.permission_grouper import PermissionBundle
    from profile_compare.types import (
        AppVisibility,
        CanonicalProfile,
        FieldAccess,
        FieldPermissionRecord,
        ObjectAccess,
        ObjectPermissionRecord,
        ObjectPermissions,
        PermissionSetInfoRecord,
        ProfileVisibilityMetadata,
    )


def derive_field_name(qualified_field: str) -> str:
    """从 ``Object.Field`` 限定名取字段名.

    取第一个 ``.`` 之后的部分; 没有 ``.`` 或 ``.`` 之后为空时返回原串.

    >>> derive_field_name("Account.Industry")
    'Industry'
    >>> derive_field_name("Industry")
    'Industry'
    """
    _, separator, remainder = qualified_field.partition(".")
    if not separator or not remainder:
        return qualified_field
    return remainder


def default_object_permissions() -> ObjectPermissions:
    """只出现字段权限的对象, 对象级权限全部为 False."""
    return {
        "read": False,
        "create": False,
        "edit": False,
        "delete": False,
        "viewAll": False,
        "modifyAll": False,
    }


def build_object_permissions(record: ObjectPermissionRecord) -> ObjectPermissions:
    permissions = default_object_permissions()
    for name, source_key in OBJECT_PERMISSION_FIELDS:
        permissions[name] = record.get(source_key) is True  # type: ignore[literal-required]
    return permissions


def build_field_access(record: FieldPermissionRecord) -> FieldAccess:
    access: FieldAccess = {"read": False, "edit": False}
    for name, source_key in FIELD_PERMISSION_FIELDS:
        access[name] = record.get(source_key) is True  # type: ignore[literal-required]
    return access


def build_objects(
    object_records: Iterable[ObjectPermissionRecord],
    field_records: Iterable[FieldPermissionRecord],
) -> dict[str, ObjectAccess]:
    """先写对象权限, 再写字段权限; 同一对象/字段后出现的记录覆盖先出现的."""
    permissions_by_object: dict[str, ObjectPermissions] = {}
    fields_by_object: dict[str, dict[str, FieldAccess]] = {}

    for object_record in object_records:
        object_name = object_record.get("SobjectType")
        if not object_name:
            continue
        permissions_by_object[object_name] = build_object_permissions(object_record)
        fields_by_object.setdefault(object_name, {})

    for field_record in field_records:
        object_name = field_record.get("SobjectType")
        if not object_name:
            continue
        permissions_by_object.setdefault(object_name, default_object_permissions())
        field_name = derive_field_name(str(field_record.get("Field") or ""))
        fields_by_object.setdefault(object_name, {})[field_name] = build_field_access(field_record)

    return {
        object_name: {
            "permissions": permissions_by_object[object_name],
            "fields": dict(sorted(fields_by_object.get(object_name, {}).items())),
        }
        for object_name in sorted(permissions_by_object)
    }


def resolve_tab_visibilities(
    fallback_tabs: Iterable[str],
    visibility: ProfileVisibilityMetadata | None,
) -> dict[str, str]:
    """选项卡可见性.

    Profile 元数据非空时整体采用, 不与 SetupEntityAccess 推导结果合并;
    否则每个可访问的选项卡记为 DefaultOn.
    """
    # 元数据为空无法区分"确实没有配置"与"读取降级为空", 两者都走回退推导
    rich_tabs = (visibility or {}).get("tabVisibilities") or {}
    if rich_tabs:
        return {str(tab): str(value) for tab, value in sorted(rich_tabs.items())}
    return {tab: TabVisibility.DEFAULT_ON.value for tab in sorted(set(fallback_tabs))}


def resolve_app_visibilities(
    fallback_apps: Iterable[str],
    visibility: ProfileVisibilityMetadata | None,
) -> dict[str, AppVisibility]:
    """应用可见性, 优先级规则与选项卡相同, 回退值为 ``{visible: True, default: False}``."""
    rich_apps = (visibility or {}).get("appVisibilities") or {}
    if rich_apps:
        return {
            str(app): {"visible": _as_flag(value, "visible"), "default": _as_flag(value, "default")}
            for app, value in sorted(rich_apps.items())
        }
    return {app: {"visible": True, "default": False} for app in sorted(set(fallback_apps))}


def build_canonical_profile(
    owner_id: str,
    display_name: str,
    bundle: PermissionBundle,
    visibility: ProfileVisibilityMetadata | None = None,
) -> CanonicalProfile:
    """组装单个 owner 的规范化文档.

    Args:
        owner_id: Profile 或 PermissionSet ID.
        display_name: 展示名(PermissionSet 已带 ``[PS] `` 前缀).
        bundle: 该 owner 的分组结果.
        visibility: Profile 元数据中的选项卡/应用可见性, PermissionSet 模式不传.

    Returns:
        CanonicalProfile: 键与序列均已排序, 相同输入产出相同文档.

    """
    return {
        "id": owner_id,
        "displayName": display_name,
        "objects": build_objects(bundle.object_permissions, bundle.field_permissions),
        "systemPermissions": dict(sorted(bundle.system_permissions.items())),
        "apexClasses": sorted(set(bundle.apex_classes)),
        "visualforcePages": sorted(set(bundle.visualforce_pages)),
        "lightningPages": sorted(set(bundle.lightning_pages)),
        "recordTypes": sorted(set(bundle.record_types)),
        "tabVisibilities": resolve_tab_visibilities(bundle.tabs, visibility),
        "appVisibilities": resolve_app_visibilities(bundle.apps, visibility),
    }


def display_name_for_permission_set(info: PermissionSetInfoRecord) -> str:
    """``[PS] <Label>``, Label 缺失时依次回退到 Name 与 Id."""
    label = info.get("Label") or info.get("Name") or info.get("Id") or ""
    return f"{PERMISSION_SET_DISPLAY_PREFIX}{label}"


def _as_flag(value: object, key: str) -> bool:
    if isinstance(value, Mapping):
        return value.get(key) is True
    return False


__all__ = [
    "build_canonical_profile",
    "build_field_access",
    "build_object_permissions",
    "build_objects",
    "default_object_permissions",
    "derive_field_name",
    "display_name_for_permission_set",
    "resolve_app_visibilities",
    "resolve_tab_visibilities",
]
