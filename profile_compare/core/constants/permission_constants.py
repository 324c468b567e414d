"""权限模型常量.

集中定义 CRM 元数据字段名、setup-entity-access 类型标签与差异分类,
规范化与对比两侧共用同一份定义,避免字符串散落.
"""

from __future__ import annotations

from enum import Enum
from typing import Final

# 系统权限字段统一前缀, 例如 PermissionsApiEnabled -> ApiEnabled
SYSTEM_PERMISSION_PREFIX: Final[str] = "Permissions"

PERMISSION_SET_DISPLAY_PREFIX: Final[str] = "[PS] "

# (规范化字段名, CRM 原始字段名), 顺序即对比输出顺序
OBJECT_PERMISSION_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("read", "PermissionsRead"),
    ("create", "PermissionsCreate"),
    ("edit", "PermissionsEdit"),
    ("delete", "PermissionsDelete"),
    ("viewAll", "PermissionsViewAllRecords"),
    ("modifyAll", "PermissionsModifyAllRecords"),
)

FIELD_PERMISSION_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("read", "PermissionsRead"),
    ("edit", "PermissionsEdit"),
)

OBJECT_PERMISSION_NAMES: Final[tuple[str, ...]] = tuple(name for name, _ in OBJECT_PERMISSION_FIELDS)
FIELD_PERMISSION_NAMES: Final[tuple[str, ...]] = tuple(name for name, _ in FIELD_PERMISSION_FIELDS)
APP_VISIBILITY_ATTRIBUTES: Final[tuple[str, ...]] = ("visible", "default")


class SetupEntityType(str, Enum):
    """SetupEntityAccess 支持的类型标签(封闭集合)."""

    APEX_CLASS = "ApexClass"
    APEX_PAGE = "ApexPage"
    RECORD_TYPE = "RecordType"
    TAB_SET = "TabSet"  # TabSet 表示自定义应用, 不是选项卡
    CUSTOM_TAB = "CustomTab"
    FLEXI_PAGE = "FlexiPage"

    @classmethod
    def parse(cls, raw: object) -> SetupEntityType | None:
        """将原始标签解析为枚举,未知标签返回 None."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class TabVisibility(str, Enum):
    """选项卡可见性."""

    DEFAULT_ON = "DefaultOn"
    DEFAULT_OFF = "DefaultOff"
    HIDDEN = "Hidden"


class DiffCategory(str, Enum):
    """差异分类,声明顺序即输出顺序."""

    OBJECT_PERMISSION = "objectPermission"
    FIELD_PERMISSION = "fieldPermission"
    SYSTEM_PERMISSION = "systemPermission"
    APEX_CLASS = "apexClass"
    VISUALFORCE_PAGE = "visualforcePage"
    LIGHTNING_PAGE = "lightningPage"
    RECORD_TYPE = "recordType"
    TAB_VISIBILITY = "tabVisibility"
    APP_VISIBILITY = "appVisibility"


class DiffType(str, Enum):
    """差异类型."""

    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


# 差异分类 -> summary 计数键
CATEGORY_SUMMARY_KEYS: Final[dict[DiffCategory, str]] = {
    DiffCategory.OBJECT_PERMISSION: "objectPermissions",
    DiffCategory.FIELD_PERMISSION: "fieldPermissions",
    DiffCategory.SYSTEM_PERMISSION: "systemPermissions",
    DiffCategory.APEX_CLASS: "apexClasses",
    DiffCategory.VISUALFORCE_PAGE: "visualforcePages",
    DiffCategory.LIGHTNING_PAGE: "lightningPages",
    DiffCategory.RECORD_TYPE: "recordTypes",
    DiffCategory.TAB_VISIBILITY: "tabVisibilities",
    DiffCategory.APP_VISIBILITY: "appVisibilities",
}

# 差异分类 -> 导出文件中的展示名
CATEGORY_LABELS: Final[dict[DiffCategory, str]] = {
    DiffCategory.OBJECT_PERMISSION: "Object Permission",
    DiffCategory.FIELD_PERMISSION: "Field Permission",
    DiffCategory.SYSTEM_PERMISSION: "System Permission",
    DiffCategory.APEX_CLASS: "Apex Class",
    DiffCategory.VISUALFORCE_PAGE: "Visualforce Page",
    DiffCategory.LIGHTNING_PAGE: "Lightning Page",
    DiffCategory.RECORD_TYPE: "Record Type",
    DiffCategory.TAB_VISIBILITY: "Tab Visibility",
    DiffCategory.APP_VISIBILITY: "App Visibility",
}

# 成员型分类: 比较的是"是否拥有", 可产出 added/removed
MEMBERSHIP_CATEGORIES: Final[frozenset[DiffCategory]] = frozenset(
    {
        DiffCategory.APEX_CLASS,
        DiffCategory.VISUALFORCE_PAGE,
        DiffCategory.LIGHTNING_PAGE,
        DiffCategory.RECORD_TYPE,
    }
)


__all__ = [
    "APP_VISIBILITY_ATTRIBUTES",
    "CATEGORY_LABELS",
    "CATEGORY_SUMMARY_KEYS",
    "FIELD_PERMISSION_FIELDS",
    "FIELD_PERMISSION_NAMES",
    "MEMBERSHIP_CATEGORIES",
    "OBJECT_PERMISSION_FIELDS",
    "OBJECT_PERMISSION_NAMES",
    "PERMISSION_SET_DISPLAY_PREFIX",
    "SYSTEM_PERMISSION_PREFIX",
    "DiffCategory",
    "DiffType",
    "SetupEntityType",
    "TabVisibility",
]
