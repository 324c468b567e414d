"""N 路差异引擎: 多个 CanonicalProfile -> 有序、分类的差异集合与统计.

对每个分类先求所有文档的路径并集(排序), 再逐路径读取各文档的取值:
- 对象/字段/系统权限缺失时读作 False, 选项卡缺失读作 Hidden, 应用缺失读作 False;
- Apex 类、VF 页面、Lightning 页面、记录类型按"是否拥有"比较.
每条并集路径恰好产出一条 DiffItem(包括 unchanged), 过滤交给导出层.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from profile_compare.core.constants.permission_constants import (
    APP_VISIBILITY_ATTRIBUTES,
    FIELD_PERMISSION_NAMES,
    MEMBERSHIP_CATEGORIES,
    OBJECT_PERMISSION_NAMES,
    DiffCategory,
    DiffType,
    TabVisibility,
)
from profile_compare.types.comparison import ComparedEntity, ComparisonResult, ComparisonSummary, DiffItem
from profile_compare.utils.time_utils import time_utils

if TYPE_CHECKING:
    from profile_compare.types import CanonicalProfile, DiffValue

# 成员型分类 -> CanonicalProfile 中的有序序列键
MEMBERSHIP_SEQUENCE_KEYS: tuple[tuple[DiffCategory, str], ...] = (
    (DiffCategory.APEX_CLASS, "apexClasses"),
    (DiffCategory.VISUALFORCE_PAGE, "visualforcePages"),
    (DiffCategory.LIGHTNING_PAGE, "lightningPages"),
    (DiffCategory.RECORD_TYPE, "recordTypes"),
)


def classify_values(category: DiffCategory, values: Sequence[DiffValue]) -> DiffType:
    """判定差异类型.

    成员型分类以第一个文档为基准: 第一个缺失而后续拥有为 added, 反之为 removed.
    取值型分类只区分 unchanged 与 changed, None 视为缺失不参与比较.

    Args:
        category: 差异分类.
        values: 按文档顺序排列的取值.

    Returns:
        DiffType: 差异类型.

    """
    if category in MEMBERSHIP_CATEGORIES:
        flags = [value is True for value in values]
        if not flags or all(flag == flags[0] for flag in flags):
            return DiffType.UNCHANGED
        return DiffType.REMOVED if flags[0] else DiffType.ADDED

    present = [value for value in values if value is not None]
    if all(value == present[0] for value in present[1:]):
        return DiffType.UNCHANGED
    return DiffType.CHANGED


def _sorted_union(keys_per_profile: Iterable[Iterable[str]]) -> list[str]:
    union: set[str] = set()
    for keys in keys_per_profile:
        union.update(keys)
    return sorted(union)


class DiffEngine:
    """多文档差异对比.

    纯函数式: 不修改输入文档, 相同输入与 ``compared_at`` 产出相同结果.
    少于 2 个文档属于调用方校验范畴, 引擎仍返回结构完整的结果.

    Attributes:
        clock: 未显式传入 ``compared_at`` 时使用的时钟.

    """

    def __init__(self, clock: Callable[[], datetime] = time_utils.now) -> None:
        self.clock = clock

    def compare(
        self,
        profiles: Sequence[CanonicalProfile],
        *,
        compared_at: datetime | None = None,
    ) -> ComparisonResult:
        """对比多个规范化文档.

        Args:
            profiles: 参与对比的文档, 顺序决定 added/removed 的基准与 values 顺序.
            compared_at: 对比时间, 缺省取 clock().

        Returns:
            ComparisonResult: 分类顺序固定、分类内按路径并集排序的差异集合.

        """
        differences = (
            *self._object_permission_items(profiles),
            *self._field_permission_items(profiles),
            *self._system_permission_items(profiles),
            *self._membership_items(profiles),
            *self._tab_visibility_items(profiles),
            *self._app_visibility_items(profiles),
        )
        counts = {category: 0 for category in DiffCategory}
        for item in differences:
            if item.is_difference:
                counts[item.category] += 1

        return ComparisonResult(
            entities=tuple(ComparedEntity(profile["id"], profile["displayName"]) for profile in profiles),
            timestamp=time_utils.to_iso_timestamp(compared_at or self.clock()),
            differences=differences,
            summary=ComparisonSummary(tuple(counts.items())),
        )

    @staticmethod
    def _item(
        profiles: Sequence[CanonicalProfile],
        category: DiffCategory,
        path: str,
        values: Sequence[DiffValue],
        *,
        object_name: str | None = None,
        field_name: str | None = None,
        permission_name: str | None = None,
    ) -> DiffItem:
        return DiffItem(
            path=path,
            category=category,
            values=tuple((profile["id"], value) for profile, value in zip(profiles, values, strict=True)),
            diff_type=classify_values(category, values),
            object_name=object_name,
            field_name=field_name,
            permission_name=permission_name,
        )

    def _object_permission_items(self, profiles: Sequence[CanonicalProfile]) -> Iterator[DiffItem]:
        for object_name in _sorted_union(profile["objects"] for profile in profiles):
            for permission_name in OBJECT_PERMISSION_NAMES:
                values = []
                for profile in profiles:
                    object_access = profile["objects"].get(object_name)
                    permissions = object_access["permissions"] if object_access else {}
                    values.append(permissions.get(permission_name) is True)
                yield self._item(
                    profiles,
                    DiffCategory.OBJECT_PERMISSION,
                    f"objects.{object_name}.permissions.{permission_name}",
                    values,
                    object_name=object_name,
                    permission_name=permission_name,
                )

    def _field_permission_items(self, profiles: Sequence[CanonicalProfile]) -> Iterator[DiffItem]:
        for object_name in _sorted_union(profile["objects"] for profile in profiles):
            field_maps = [
                profile["objects"][object_name]["fields"] if object_name in profile["objects"] else {}
                for profile in profiles
            ]
            for field_name in _sorted_union(field_maps):
                for permission_name in FIELD_PERMISSION_NAMES:
                    values = [
                        (field_map.get(field_name) or {}).get(permission_name) is True for field_map in field_maps
                    ]
                    yield self._item(
                        profiles,
                        DiffCategory.FIELD_PERMISSION,
                        f"objects.{object_name}.fields.{field_name}.{permission_name}",
                        values,
                        object_name=object_name,
                        field_name=field_name,
                        permission_name=permission_name,
                    )

    def _system_permission_items(self, profiles: Sequence[CanonicalProfile]) -> Iterator[DiffItem]:
        for permission_name in _sorted_union(profile["systemPermissions"] for profile in profiles):
            values = [profile["systemPermissions"].get(permission_name) is True for profile in profiles]
            yield self._item(
                profiles,
                DiffCategory.SYSTEM_PERMISSION,
                f"systemPermissions.{permission_name}",
                values,
                permission_name=permission_name,
            )

    def _membership_items(self, profiles: Sequence[CanonicalProfile]) -> Iterator[DiffItem]:
        for category, sequence_key in MEMBERSHIP_SEQUENCE_KEYS:
            members = [frozenset(profile[sequence_key]) for profile in profiles]  # type: ignore[literal-required]
            for name in _sorted_union(members):
                yield self._item(
                    profiles,
                    category,
                    f"{sequence_key}.{name}",
                    [name in owned for owned in members],
                    permission_name=name,
                )

    def _tab_visibility_items(self, profiles: Sequence[CanonicalProfile]) -> Iterator[DiffItem]:
        for tab_name in _sorted_union(profile["tabVisibilities"] for profile in profiles):
            values = [
                profile["tabVisibilities"].get(tab_name) or TabVisibility.HIDDEN.value for profile in profiles
            ]
            yield self._item(
                profiles,
                DiffCategory.TAB_VISIBILITY,
                f"tabVisibilities.{tab_name}",
                values,
                permission_name=tab_name,
            )

    def _app_visibility_items(self, profiles: Sequence[CanonicalProfile]) -> Iterator[DiffItem]:
        for app_name in _sorted_union(profile["appVisibilities"] for profile in profiles):
            for attribute in APP_VISIBILITY_ATTRIBUTES:
                values = [
                    (profile["appVisibilities"].get(app_name) or {}).get(attribute) is True for profile in profiles
                ]
                yield self._item(
                    profiles,
                    DiffCategory.APP_VISIBILITY,
                    f"appVisibilities.{app_name}.{attribute}",
                    values,
                    permission_name=f"{app_name}.{attribute}",
                )


__all__ = ["DiffEngine", "MEMBERSHIP_SEQUENCE_KEYS", "classify_values"]
