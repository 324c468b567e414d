"""规范化权限文档(CanonicalProfile)类型定义.

键名即对外 JSON 键名, 导出层与 API 直接序列化, 不做二次转换.
"""

from __future__ import annotations

from typing import TypedDict

from profile_compare.types.records import AppVisibility


class ObjectPermissions(TypedDict):
    """对象级 6 项权限."""

    read: bool
    create: bool
    edit: bool
    delete: bool
    viewAll: bool
    modifyAll: bool


class FieldAccess(TypedDict):
    """字段级读写权限."""

    read: bool
    edit: bool


class ObjectAccess(TypedDict):
    """单个对象的权限与字段权限."""

    permissions: ObjectPermissions
    fields: dict[str, FieldAccess]


class CanonicalProfile(TypedDict):
    """单个 Profile / PermissionSet 的规范化文档."""

    id: str
    displayName: str
    objects: dict[str, ObjectAccess]
    systemPermissions: dict[str, bool]
    apexClasses: list[str]
    visualforcePages: list[str]
    lightningPages: list[str]
    recordTypes: list[str]
    tabVisibilities: dict[str, str]
    appVisibilities: dict[str, AppVisibility]


__all__ = [
    "CanonicalProfile",
    "FieldAccess",
    "ObjectAccess",
    "ObjectPermissions",
]
