"""对比与导出写路径 schema."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, cast

from pydantic import ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator, model_validator

from profile_compare.core.constants.permission_constants import DiffType
from profile_compare.core.constants.system_constants import ErrorMessages
from profile_compare.schemas.base import PayloadSchema
from profile_compare.schemas.validation import SchemaMessageKeyError
from profile_compare.services.comparison import MIN_COMPARISON_TARGETS
from profile_compare.services.files.comparison_export_service import CSV_EXPORT_FORMATS

if TYPE_CHECKING:
    from profile_compare.types import CanonicalProfile, ComparisonPayload


def _clean_ids(values: Iterable[str]) -> list[str]:
    """去除空白与重复, 保留首次出现的顺序."""
    cleaned: list[str] = []
    for value in values:
        stripped = value.strip()
        if stripped and stripped not in cleaned:
            cleaned.append(stripped)
    return cleaned


def _ensure_enough_targets(ids: Iterable[str]) -> None:
    if len(set(ids)) < MIN_COMPARISON_TARGETS:
        raise SchemaMessageKeyError(
            ErrorMessages.COMPARISON_TARGETS_REQUIRED,
            message_key="COMPARISON_TARGETS_REQUIRED",
        )


class ProfileComparisonPayload(PayloadSchema):
    """Profile 对比 payload."""

    profile_ids: list[StrictStr] = Field(alias="profileIds")

    @field_validator("profile_ids")
    @classmethod
    def _validate_profile_ids(cls, value: list[str]) -> list[str]:
        cleaned = _clean_ids(value)
        _ensure_enough_targets(cleaned)
        return cleaned


class PermissionSetComparisonPayload(PayloadSchema):
    """PermissionSet 对比 payload, 可混入 Profile."""

    permission_set_ids: list[StrictStr] = Field(alias="permissionSetIds")
    include_profiles: list[StrictStr] = Field(default_factory=list, alias="includeProfiles")

    @field_validator("permission_set_ids", "include_profiles")
    @classmethod
    def _clean(cls, value: list[str]) -> list[str]:
        return _clean_ids(value)

    @field_validator("include_profiles", mode="before")
    @classmethod
    def _parse_include_profiles(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _validate_targets(self) -> PermissionSetComparisonPayload:
        _ensure_enough_targets([*self.include_profiles, *self.permission_set_ids])
        return self


class CsvExportOptions(PayloadSchema):
    """CSV 导出选项, include_unchanged 缺省时由配置决定."""

    format: StrictStr = "differences"
    include_unchanged: StrictBool | None = Field(default=None, alias="includeUnchanged")
    categories: list[StrictStr] | None = None

    @field_validator("format", mode="before")
    @classmethod
    def _parse_format(cls, value: Any) -> Any:
        if value is None:
            return "differences"
        return value.strip() if isinstance(value, str) else value

    @field_validator("format")
    @classmethod
    def _validate_format(cls, value: str) -> str:
        if value not in CSV_EXPORT_FORMATS:
            raise SchemaMessageKeyError(
                f"{ErrorMessages.EXPORT_FORMAT_INVALID}: {value}",
                message_key="EXPORT_FORMAT_INVALID",
            )
        return value


class ExportDocumentSchema(PayloadSchema):
    """导出请求体中回传的文档片段: 只校验结构, 未知字段原样保留."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class ComparedEntitySchema(ExportDocumentSchema):
    id: StrictStr
    display_name: StrictStr | None = Field(default=None, alias="displayName")


class DiffItemSchema(ExportDocumentSchema):
    """单条差异, 取值仅允许布尔、字符串或空."""

    path: StrictStr | None = None
    category: StrictStr
    object_name: StrictStr | None = Field(default=None, alias="objectName")
    field_name: StrictStr | None = Field(default=None, alias="fieldName")
    permission_name: StrictStr | None = Field(default=None, alias="permissionName")
    values: dict[str, StrictBool | StrictStr | None] = Field(default_factory=dict)
    diff_type: StrictStr = Field(alias="diffType")

    @field_validator("diff_type")
    @classmethod
    def _validate_diff_type(cls, value: str) -> str:
        if value not in {diff_type.value for diff_type in DiffType}:
            raise SchemaMessageKeyError(
                f"{ErrorMessages.COMPARISON_DATA_INVALID}: diffType={value}",
                message_key="COMPARISON_DATA_INVALID",
            )
        return value


class ComparisonDataSchema(ExportDocumentSchema):
    """对比结果 payload."""

    entities: list[ComparedEntitySchema] = Field(default_factory=list)
    timestamp: StrictStr | None = None
    differences: list[DiffItemSchema] = Field(default_factory=list)
    summary: dict[str, StrictInt] = Field(default_factory=dict)

    @field_validator("summary")
    @classmethod
    def _validate_summary(cls, value: dict[str, int]) -> dict[str, int]:
        if any(count < 0 for count in value.values()):
            raise SchemaMessageKeyError(
                f"{ErrorMessages.COMPARISON_DATA_INVALID}: summary",
                message_key="COMPARISON_DATA_INVALID",
            )
        return value


class ObjectAccessSchema(ExportDocumentSchema):
    permissions: dict[str, StrictBool] = Field(default_factory=dict)
    field_access: dict[str, dict[str, StrictBool]] = Field(default_factory=dict, alias="fields")


class CanonicalProfileSchema(ExportDocumentSchema):
    """规范化文档."""

    id: StrictStr
    display_name: StrictStr | None = Field(default=None, alias="displayName")
    objects: dict[str, ObjectAccessSchema] = Field(default_factory=dict)
    system_permissions: dict[str, StrictBool] = Field(default_factory=dict, alias="systemPermissions")
    apex_classes: list[StrictStr] = Field(default_factory=list, alias="apexClasses")
    visualforce_pages: list[StrictStr] = Field(default_factory=list, alias="visualforcePages")
    lightning_pages: list[StrictStr] = Field(default_factory=list, alias="lightningPages")
    record_types: list[StrictStr] = Field(default_factory=list, alias="recordTypes")
    tab_visibilities: dict[str, StrictStr] = Field(default_factory=dict, alias="tabVisibilities")
    app_visibilities: dict[str, dict[str, StrictBool]] = Field(default_factory=dict, alias="appVisibilities")


class JsonExportPayload(PayloadSchema):
    """JSON 导出 payload: 对比结果与规范化文档经结构校验后回传."""

    comparison: ComparisonDataSchema | None = None
    profiles: list[CanonicalProfileSchema] | None = None

    @model_validator(mode="after")
    def _require_comparison_data(self) -> JsonExportPayload:
        if self.comparison is None or self.profiles is None:
            raise SchemaMessageKeyError(
                ErrorMessages.COMPARISON_DATA_REQUIRED,
                message_key="COMPARISON_DATA_REQUIRED",
            )
        return self

    def comparison_payload(self) -> ComparisonPayload:
        return cast("ComparisonPayload", self.comparison.to_payload() if self.comparison else {})

    def profile_payloads(self) -> list[CanonicalProfile]:
        return [cast("CanonicalProfile", profile.to_payload()) for profile in self.profiles or []]


class CsvExportPayload(JsonExportPayload):
    """CSV 导出 payload."""

    options: CsvExportOptions = Field(default_factory=CsvExportOptions)

    @field_validator("options", mode="before")
    @classmethod
    def _parse_options(cls, value: Any) -> Any:
        return {} if value is None else value
