"""CRM 原始记录类型定义.

字段名沿用 CRM API 原样(PascalCase),由数据源适配器产出,规范化阶段只读消费.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeAlias, TypedDict


class ProfileRecord(TypedDict):
    """Profile 基础信息."""

    Id: str
    Name: str


class PermissionSetInfoRecord(TypedDict, total=False):
    """PermissionSet 基础信息."""

    Id: str
    Name: str
    Label: str
    Description: str | None


class ObjectPermissionRecord(TypedDict, total=False):
    """ObjectPermissions 记录, ParentId 为所属 PermissionSet."""

    ParentId: str
    SobjectType: str
    PermissionsRead: bool
    PermissionsCreate: bool
    PermissionsEdit: bool
    PermissionsDelete: bool
    PermissionsViewAllRecords: bool
    PermissionsModifyAllRecords: bool


class FieldPermissionRecord(TypedDict, total=False):
    """FieldPermissions 记录, Field 为 ``Object.Field`` 限定名."""

    ParentId: str
    SobjectType: str
    Field: str
    PermissionsRead: bool
    PermissionsEdit: bool


class SetupEntityAccessRecord(TypedDict):
    """SetupEntityAccess 记录."""

    ParentId: str
    SetupEntityType: str
    SetupEntityId: str


# PermissionSet 记录携带任意数量的 Permissions* 布尔字段, 无法用固定键描述
PermissionSetRecord: TypeAlias = Mapping[str, object]


class AppVisibility(TypedDict):
    """应用可见性."""

    visible: bool
    default: bool


class ProfileVisibilityMetadata(TypedDict, total=False):
    """Profile 元数据中的选项卡/应用可见性(比 SetupEntityAccess 更完整)."""

    tabVisibilities: dict[str, str]
    appVisibilities: dict[str, AppVisibility]


NameLookup: TypeAlias = dict[str, str]


__all__ = [
    "AppVisibility",
    "FieldPermissionRecord",
    "NameLookup",
    "ObjectPermissionRecord",
    "PermissionSetInfoRecord",
    "PermissionSetRecord",
    "ProfileRecord",
    "ProfileVisibilityMetadata",
    "SetupEntityAccessRecord",
]
