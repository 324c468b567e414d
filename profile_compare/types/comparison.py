"""对比结果类型定义.

DiffItem/ComparisonResult 为不可变数据类, `to_payload()` 输出对外 JSON 结构;
导出层消费的是 payload(可能来自请求体), 对应 `ComparisonPayload`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias, TypedDict

from profile_compare.core.constants.permission_constants import CATEGORY_SUMMARY_KEYS, DiffCategory, DiffType
from profile_compare.types.profiles import CanonicalProfile

DiffValue: TypeAlias = bool | str | None


class ComparedEntityPayload(TypedDict):
    """参与对比的实体."""

    id: str
    displayName: str


class DiffItemPayload(TypedDict, total=False):
    """单条差异."""

    path: str
    category: str
    objectName: str
    fieldName: str
    permissionName: str
    values: dict[str, DiffValue]
    diffType: str


class ComparisonPayload(TypedDict):
    """对比结果."""

    entities: list[ComparedEntityPayload]
    timestamp: str
    differences: list[DiffItemPayload]
    summary: dict[str, int]


@dataclass(frozen=True, slots=True)
class ComparedEntity:
    """参与对比的实体(id + 展示名)."""

    id: str
    display_name: str

    def to_payload(self) -> ComparedEntityPayload:
        return {"id": self.id, "displayName": self.display_name}


@dataclass(frozen=True, slots=True)
class DiffItem:
    """对比输出的最小单元,创建后不再修改."""

    path: str
    category: DiffCategory
    values: tuple[tuple[str, DiffValue], ...]
    diff_type: DiffType
    object_name: str | None = None
    field_name: str | None = None
    permission_name: str | None = None

    @property
    def is_difference(self) -> bool:
        return self.diff_type is not DiffType.UNCHANGED

    def value_for(self, entity_id: str) -> DiffValue:
        for key, value in self.values:
            if key == entity_id:
                return value
        return None

    def to_payload(self) -> DiffItemPayload:
        payload: DiffItemPayload = {
            "path": self.path,
            "category": self.category.value,
        }
        if self.object_name is not None:
            payload["objectName"] = self.object_name
        if self.field_name is not None:
            payload["fieldName"] = self.field_name
        if self.permission_name is not None:
            payload["permissionName"] = self.permission_name
        payload["values"] = dict(self.values)
        payload["diffType"] = self.diff_type.value
        return payload


@dataclass(frozen=True, slots=True)
class ComparisonSummary:
    """各分类差异计数(不含 unchanged)."""

    counts: tuple[tuple[DiffCategory, int], ...]

    @property
    def total_differences(self) -> int:
        return sum(count for _, count in self.counts)

    def count_for(self, category: DiffCategory) -> int:
        for key, count in self.counts:
            if key is category:
                return count
        return 0

    def to_payload(self) -> dict[str, int]:
        payload = {CATEGORY_SUMMARY_KEYS[category]: count for category, count in self.counts}
        payload["totalDifferences"] = self.total_differences
        return payload


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """一次对比的完整输出."""

    entities: tuple[ComparedEntity, ...]
    timestamp: str
    differences: tuple[DiffItem, ...]
    summary: ComparisonSummary

    def to_payload(self) -> ComparisonPayload:
        return {
            "entities": [entity.to_payload() for entity in self.entities],
            "timestamp": self.timestamp,
            "differences": [item.to_payload() for item in self.differences],
            "summary": self.summary.to_payload(),
        }


@dataclass(frozen=True, slots=True)
class ComparisonOutcome:
    """对比服务返回值: 对比结果 + 参与对比的规范化文档."""

    result: ComparisonResult
    profiles: tuple[CanonicalProfile, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, object]:
        return {
            "comparison": self.result.to_payload(),
            "profiles": list(self.profiles),
        }


__all__ = [
    "ComparedEntity",
    "ComparedEntityPayload",
    "ComparisonOutcome",
    "ComparisonPayload",
    "ComparisonResult",
    "ComparisonSummary",
    "DiffItem",
    "DiffItemPayload",
    "DiffValue",
]
