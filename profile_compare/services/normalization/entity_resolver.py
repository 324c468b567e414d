"""实体名称解析器: 将 SetupEntityAccess 引用的不透明 ID 解析为展示名."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, TypeAlias

from profile_compare.core.constants.permission_constants import SetupEntityType
from profile_compare.utils.structlog_config import get_normalizer_logger

if TYPE_CHECKING:
    from profile_compare.services.permission_source import PermissionDataSource
    from profile_compare.types import NameLookup

ResolvableEntity: TypeAlias = SetupEntityType

MODULE = "normalization"


class EntityResolver:
    """ID -> 展示名解析器.

    - Apex 类与 Visualforce 页面仅解析被引用的 ID, 控制查询规模.
    - 记录类型、选项卡、应用与 Lightning 页面直接拉取全量目录.
    - 任一查询失败时该类型降级为空映射, 不重试; 解析不到的 ID 不出现在结果中.

    Attributes:
        source: CRM 权限元数据数据源.
        logger: 规范化日志记录器.

    """

    def __init__(self, source: PermissionDataSource) -> None:
        self.source = source
        self.logger = get_normalizer_logger()

    def resolve(self, entity_type: ResolvableEntity, ids: Iterable[str] = ()) -> NameLookup:
        """按实体类型解析名称.

        Args:
            entity_type: 实体类型标签.
            ids: 需要解析的 ID, 目录型实体忽略该参数.

        Returns:
            NameLookup: id -> 展示名.

        """
        if entity_type is SetupEntityType.APEX_CLASS:
            return self.resolve_apex_classes(ids)
        if entity_type is SetupEntityType.APEX_PAGE:
            return self.resolve_apex_pages(ids)
        if entity_type is SetupEntityType.RECORD_TYPE:
            return self.resolve_record_types()
        if entity_type is SetupEntityType.CUSTOM_TAB:
            return self.resolve_custom_tabs()
        if entity_type is SetupEntityType.TAB_SET:
            return self.resolve_custom_apps()
        return self.resolve_lightning_pages()

    def resolve_apex_classes(self, ids: Iterable[str]) -> NameLookup:
        """解析被引用的 Apex 类."""
        referenced = _unique_sorted(ids)
        if not referenced:
            return {}
        return self._safe_lookup(
            SetupEntityType.APEX_CLASS,
            lambda: self.source.get_apex_class_names(referenced),
            requested=len(referenced),
        )

    def resolve_apex_pages(self, ids: Iterable[str]) -> NameLookup:
        """解析被引用的 Visualforce 页面."""
        referenced = _unique_sorted(ids)
        if not referenced:
            return {}
        return self._safe_lookup(
            SetupEntityType.APEX_PAGE,
            lambda: self.source.get_apex_page_names(referenced),
            requested=len(referenced),
        )

    def resolve_record_types(self) -> NameLookup:
        return self._safe_lookup(SetupEntityType.RECORD_TYPE, self.source.get_record_types)

    def resolve_custom_tabs(self) -> NameLookup:
        return self._safe_lookup(SetupEntityType.CUSTOM_TAB, self.source.get_custom_tabs)

    def resolve_custom_apps(self) -> NameLookup:
        return self._safe_lookup(SetupEntityType.TAB_SET, self.source.get_custom_apps)

    def resolve_lightning_pages(self) -> NameLookup:
        """拉取全局 Lightning 页面目录, 一次规范化只调用一次并由所有 owner 共享."""
        return self._safe_lookup(SetupEntityType.FLEXI_PAGE, self.source.get_lightning_pages)

    @staticmethod
    def lightning_page_name(names: NameLookup, entity_id: str) -> str:
        """Lightning 页面名称, 解析不到时回退为原始 ID.

        Profile 与 PermissionSet 两种模式使用同一回退规则, 保证混合对比时键一致.
        """
        return names.get(entity_id) or entity_id

    def _safe_lookup(
        self,
        entity_type: ResolvableEntity,
        loader: Callable[[], NameLookup],
        *,
        requested: int | None = None,
    ) -> NameLookup:
        try:
            names = loader()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning(
                "normalizer_name_resolution_failed",
                module=MODULE,
                phase="resolve_names",
                entity_type=entity_type.value,
                requested=requested,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return {}

        resolved = {str(key): str(value) for key, value in (names or {}).items() if value}
        self.logger.debug(
            "normalizer_names_resolved",
            module=MODULE,
            phase="resolve_names",
            entity_type=entity_type.value,
            requested=requested,
            resolved=len(resolved),
        )
        return resolved


def _unique_sorted(ids: Iterable[str]) -> list[str]:
    return sorted({entity_id for entity_id in ids if entity_id})


__all__ = ["EntityResolver", "ResolvableEntity"]
