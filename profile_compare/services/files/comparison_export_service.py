"""对比结果导出 Service.

职责:
- 将对比结果 payload 与规范化文档渲染为 CSV/JSON 文本并给出文件名
- 不返回 Response、不重新对比; 输入通常来自请求体, 服务端不持久化对比结果
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, Final

from profile_compare.core.constants.permission_constants import (
    APP_VISIBILITY_ATTRIBUTES,
    CATEGORY_LABELS,
    CATEGORY_SUMMARY_KEYS,
    FIELD_PERMISSION_NAMES,
    OBJECT_PERMISSION_NAMES,
    DiffCategory,
    DiffType,
    TabVisibility,
)
from profile_compare.core.exceptions import ValidationError
from profile_compare.services.comparison.diff_engine import MEMBERSHIP_SEQUENCE_KEYS
from profile_compare.services.files.csv_export_result import CsvExportResult, JsonExportResult
from profile_compare.utils.spreadsheet_formula_safety import sanitize_csv_row
from profile_compare.utils.structlog_config import get_comparison_logger
from profile_compare.utils.time_utils import time_utils

if TYPE_CHECKING:
    from profile_compare.types import CanonicalProfile, ComparisonPayload

MODULE = "export"
FILENAME_PREFIX: Final[str] = "profile-comparison"
CSV_EXPORT_FORMATS: Final[tuple[str, ...]] = ("differences", "detailed", "summary")
ALL_CATEGORIES: Final[str] = "all"

SUMMARY_ROW_LABELS: Final[dict[DiffCategory, str]] = {
    DiffCategory.OBJECT_PERMISSION: "Object Permissions",
    DiffCategory.FIELD_PERMISSION: "Field Permissions",
    DiffCategory.SYSTEM_PERMISSION: "System Permissions",
    DiffCategory.APEX_CLASS: "Apex Classes",
    DiffCategory.VISUALFORCE_PAGE: "Visualforce Pages",
    DiffCategory.LIGHTNING_PAGE: "Lightning Pages",
    DiffCategory.RECORD_TYPE: "Record Types",
    DiffCategory.TAB_VISIBILITY: "Tab Visibilities",
    DiffCategory.APP_VISIBILITY: "App Visibilities",
}

APP_ATTRIBUTE_LABELS: Final[dict[str, str]] = {"visible": "Visible", "default": "Default"}


def format_cell_value(value: object) -> str:
    """布尔值输出 Yes/No, 缺失输出空串, 其余转字符串."""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if value is None:
        return ""
    return str(value)


def format_category(category: str) -> str:
    try:
        return CATEGORY_LABELS[DiffCategory(category)]
    except ValueError:
        return category


class ComparisonExportService:
    """对比结果导出服务."""

    def __init__(self, clock: Callable[[], datetime] = time_utils.now) -> None:
        self._clock = clock
        self._logger = get_comparison_logger()

    def export_csv(
        self,
        comparison: ComparisonPayload | None,
        profiles: Sequence[CanonicalProfile] | None,
        options: Mapping[str, Any] | None = None,
    ) -> CsvExportResult:
        """按 ``options.format`` 分派到三种 CSV 导出.

        Args:
            comparison: 对比结果 payload.
            profiles: 参与对比的规范化文档.
            options: ``format``(differences|detailed|summary, 默认 differences)、
                ``includeUnchanged``、``categories``.

        Returns:
            CsvExportResult: 文件名与 CSV 文本.

        Raises:
            ValidationError: 缺少对比数据或导出格式不受支持.

        """
        comparison, profiles = self._require_data(comparison, profiles)
        options = options or {}
        export_format = str(options.get("format") or "differences")
        if export_format not in CSV_EXPORT_FORMATS:
            raise ValidationError(message_key="EXPORT_FORMAT_INVALID", extra={"format": export_format})

        if export_format == "detailed":
            result = self.export_detailed_csv(profiles)
        elif export_format == "summary":
            result = self.export_summary_csv(comparison)
        else:
            result = self.export_differences_csv(
                comparison,
                include_unchanged=bool(options.get("includeUnchanged", False)),
                categories=options.get("categories"),
            )

        self._logger.info(
            "comparison_export_generated",
            module=MODULE,
            format=export_format,
            filename=result.filename,
            bytes=len(result.content.encode("utf-8")),
        )
        return result

    def export_differences_csv(
        self,
        comparison: ComparisonPayload,
        *,
        include_unchanged: bool = False,
        categories: Iterable[str] | None = None,
    ) -> CsvExportResult:
        """导出差异明细, 每条 DiffItem 一行, 每个实体一列."""
        entities = list(comparison.get("entities") or [])
        selected = self._category_filter(categories)

        output, writer = self._new_writer()
        writer.writerow(
            sanitize_csv_row(
                ["Category", "Object", "Field/Permission", "Diff Type", *(e.get("displayName") for e in entities)],
            ),
        )
        for item in comparison.get("differences") or []:
            if not include_unchanged and item.get("diffType") == DiffType.UNCHANGED.value:
                continue
            if selected is not None and item.get("category") not in selected:
                continue
            values = item.get("values") or {}
            field_name = item.get("fieldName")
            permission_name = item.get("permissionName") or ""
            writer.writerow(
                sanitize_csv_row(
                    [
                        format_category(str(item.get("category") or "")),
                        item.get("objectName") or "",
                        f"{field_name}.{permission_name}" if field_name else permission_name,
                        item.get("diffType") or "",
                        *(format_cell_value(values.get(entity.get("id"))) for entity in entities),
                    ],
                ),
            )
        return CsvExportResult(filename=self._filename("differences", "csv"), content=output.getvalue())

    def export_detailed_csv(self, profiles: Sequence[CanonicalProfile]) -> CsvExportResult:
        """导出所有文档的完整权限矩阵(不限于差异)."""
        output, writer = self._new_writer()
        writer.writerow(
            sanitize_csv_row(["Category", "Object", "Field", "Permission", *(p.get("displayName") for p in profiles)]),
        )
        for row in self._detailed_rows(profiles):
            writer.writerow(sanitize_csv_row(row))
        return CsvExportResult(filename=self._filename("detailed", "csv"), content=output.getvalue())

    def export_summary_csv(self, comparison: ComparisonPayload) -> CsvExportResult:
        """导出各分类差异计数."""
        summary = comparison.get("summary") or {}
        entities = comparison.get("entities") or []

        output, writer = self._new_writer()
        rows: list[list[object]] = [
            ["Profile Comparison Summary"],
            ["Generated", time_utils.to_iso_timestamp(self._clock())],
            ["Profiles Compared", ", ".join(str(entity.get("displayName") or "") for entity in entities)],
            [],
            ["Category", "Differences"],
        ]
        total = 0
        for category in DiffCategory:
            count = int(summary.get(CATEGORY_SUMMARY_KEYS[category]) or 0)
            total += count
            rows.append([SUMMARY_ROW_LABELS[category], count])
        rows.append([])
        rows.append(["Total Differences", int(summary.get("totalDifferences", total) or 0)])

        for row in rows:
            writer.writerow(sanitize_csv_row(row))
        return CsvExportResult(filename=self._filename("summary", "csv"), content=output.getvalue())

    def export_json(
        self,
        comparison: ComparisonPayload | None,
        profiles: Sequence[CanonicalProfile] | None,
    ) -> JsonExportResult:
        """导出 ``{comparison, profiles, exportedAt}``."""
        comparison, profiles = self._require_data(comparison, profiles)
        document = {
            "comparison": comparison,
            "profiles": list(profiles),
            "exportedAt": time_utils.to_iso_timestamp(self._clock()),
        }
        content = json.dumps(document, ensure_ascii=False, indent=2)
        result = JsonExportResult(filename=self._filename(None, "json"), content=content)
        self._logger.info(
            "comparison_export_generated",
            module=MODULE,
            format="json",
            filename=result.filename,
            bytes=len(content.encode("utf-8")),
        )
        return result

    @staticmethod
    def _require_data(
        comparison: ComparisonPayload | None,
        profiles: Sequence[CanonicalProfile] | None,
    ) -> tuple[ComparisonPayload, Sequence[CanonicalProfile]]:
        if comparison is None or profiles is None:
            raise ValidationError(
                message_key="COMPARISON_DATA_REQUIRED",
                extra={"has_comparison": comparison is not None, "has_profiles": profiles is not None},
            )
        return comparison, profiles

    @staticmethod
    def _category_filter(categories: Iterable[str] | None) -> frozenset[str] | None:
        """``None``/空列表/包含 ``all`` 均表示不过滤."""
        selected = frozenset(categories or ())
        if not selected or ALL_CATEGORIES in selected:
            return None
        return selected

    @staticmethod
    def _new_writer() -> tuple[io.StringIO, Any]:
        output = io.StringIO()
        return output, csv.writer(output, lineterminator="\n")

    def _filename(self, kind: str | None, extension: str) -> str:
        date_part = time_utils.format_date(self._clock())
        if kind:
            return f"{FILENAME_PREFIX}-{kind}-{date_part}.{extension}"
        return f"{FILENAME_PREFIX}-{date_part}.{extension}"

    @staticmethod
    def _detailed_rows(profiles: Sequence[CanonicalProfile]) -> Iterable[list[object]]:
        def union(keys_per_profile: Iterable[Iterable[str]]) -> list[str]:
            merged: set[str] = set()
            for keys in keys_per_profile:
                merged.update(keys)
            return sorted(merged)

        def yes_no(flags: Iterable[bool]) -> list[str]:
            return [format_cell_value(flag is True) for flag in flags]

        objects_per_profile = [profile.get("objects") or {} for profile in profiles]
        for object_name in union(objects_per_profile):
            label = CATEGORY_LABELS[DiffCategory.OBJECT_PERMISSION]
            for permission_name in OBJECT_PERMISSION_NAMES:
                flags = [
                    ((objects.get(object_name) or {}).get("permissions") or {}).get(permission_name)
                    for objects in objects_per_profile
                ]
                yield [label, object_name, "", permission_name, *yes_no(flags)]

            field_maps = [(objects.get(object_name) or {}).get("fields") or {} for objects in objects_per_profile]
            label = CATEGORY_LABELS[DiffCategory.FIELD_PERMISSION]
            for field_name in union(field_maps):
                for permission_name in FIELD_PERMISSION_NAMES:
                    flags = [(fields.get(field_name) or {}).get(permission_name) for fields in field_maps]
                    yield [label, object_name, field_name, permission_name, *yes_no(flags)]

        system_maps = [profile.get("systemPermissions") or {} for profile in profiles]
        for permission_name in union(system_maps):
            flags = [permissions.get(permission_name) for permissions in system_maps]
            yield [CATEGORY_LABELS[DiffCategory.SYSTEM_PERMISSION], "", "", permission_name, *yes_no(flags)]

        for category, sequence_key in MEMBERSHIP_SEQUENCE_KEYS:
            members = [frozenset(profile.get(sequence_key) or ()) for profile in profiles]
            for name in union(members):
                yield [CATEGORY_LABELS[category], "", "", name, *yes_no(name in owned for owned in members)]

        tab_maps = [profile.get("tabVisibilities") or {} for profile in profiles]
        for tab_name in union(tab_maps):
            values = [tabs.get(tab_name) or TabVisibility.HIDDEN.value for tabs in tab_maps]
            yield [CATEGORY_LABELS[DiffCategory.TAB_VISIBILITY], "", "", tab_name, *values]

        app_maps = [profile.get("appVisibilities") or {} for profile in profiles]
        for app_name in union(app_maps):
            for attribute in APP_VISIBILITY_ATTRIBUTES:
                flags = [(apps.get(app_name) or {}).get(attribute) for apps in app_maps]
                yield [
                    CATEGORY_LABELS[DiffCategory.APP_VISIBILITY],
                    "",
                    "",
                    f"{app_name} ({APP_ATTRIBUTE_LABELS[attribute]})",
                    *yes_no(flags),
                ]


__all__ = ["CSV_EXPORT_FORMATS", "ComparisonExportService", "format_category", "format_cell_value"]
