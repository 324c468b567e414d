"""规范化编排: 两波容错并发查询 -> 分组 -> 构建 CanonicalProfile.

第一波: 对象权限、字段权限、系统权限、SetupEntityAccess、Lightning 页面目录五个批量查询.
第二波: 依赖第一波 SetupEntityAccess 结果的名称解析(Apex 类、VF 页面、记录类型、选项卡、应用).
每个查询独立容错: 失败时记录日志并以空结果代替, 不重试, 不中断整体流程.
"""

from __future__ import annotations

import contextvars
import functools
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, TypeVar

from flask import copy_current_request_context, has_request_context

from profile_compare.core.constants.permission_constants import SetupEntityType
from profile_compare.core.exceptions import ExternalServiceError
from profile_compare.services.normalization.entity_resolver import EntityResolver
from profile_compare.services.normalization.permission_grouper import (
    OwnerResolution,
    RawRecordSets,
    ResolvedNames,
    group_permissions,
)
from profile_compare.services.normalization.profile_builder import (
    build_canonical_profile,
    display_name_for_permission_set,
)
from profile_compare.services.permission_source import SOURCE_QUERY_EXCEPTIONS
from profile_compare.settings import DEFAULT_NORMALIZER_MAX_WORKERS
from profile_compare.utils.structlog_config import get_normalizer_logger

if TYPE_CHECKING:
    from profile_compare.services.permission_source import PermissionDataSource
    from profile_compare.types import CanonicalProfile, ProfileVisibilityMetadata

T = TypeVar("T")
MODULE = "normalization"

# (查询函数, 失败时的空结果工厂)
WaveTask = tuple[Callable[[], Any], Callable[[], Any]]


def dedupe_ids(ids: Iterable[str]) -> list[str]:
    """去重并保留首次出现的顺序, 忽略空值."""
    seen: set[str] = set()
    unique: list[str] = []
    for entity_id in ids:
        if not entity_id or entity_id in seen:
            continue
        seen.add(entity_id)
        unique.append(entity_id)
    return unique


def _with_caller_context(loader: Callable[[], T]) -> Callable[[], T]:
    """让工作线程继承调用方的 contextvars 与请求上下文, 日志保留 request_id."""
    if has_request_context():
        loader = copy_current_request_context(loader)
    return functools.partial(contextvars.copy_context().run, loader)


class BaseNormalizer:
    """两种规范化模式共用的波次调度与基础查询逻辑.

    Attributes:
        source: CRM 权限元数据数据源.
        max_workers: 单波并发线程数上限.
        resolver: 实体名称解析器.
        logger: 规范化日志记录器.

    """

    mode = "base"

    def __init__(self, source: PermissionDataSource, *, max_workers: int = DEFAULT_NORMALIZER_MAX_WORKERS) -> None:
        self.source = source
        self.max_workers = max(1, max_workers)
        self.resolver = EntityResolver(source)
        self.logger = get_normalizer_logger()

    def _collect(
        self,
        owner_ids: Sequence[str],
        owner_resolution: OwnerResolution,
    ) -> tuple[RawRecordSets, ResolvedNames]:
        permission_set_ids = owner_resolution.permission_set_ids(owner_ids)
        record_sets, lightning_pages = self._fetch_record_sets(permission_set_ids)
        names = self._resolve_names(record_sets, lightning_pages)
        return record_sets, names

    def _fetch_record_sets(self, permission_set_ids: Sequence[str]) -> tuple[RawRecordSets, dict[str, str]]:
        """第一波: 五个批量查询并发执行."""
        ids = list(permission_set_ids)
        results = self._run_wave(
            "fetch_permissions",
            {
                "object_permissions": (lambda: self.source.get_object_permissions(ids), list),
                "field_permissions": (lambda: self.source.get_field_permissions(ids), list),
                "system_permissions": (
                    lambda: self.source.get_permission_sets_with_system_permissions(ids),
                    list,
                ),
                "setup_entity_access": (lambda: self.source.get_setup_entity_access(ids), list),
                "lightning_pages": (self.resolver.resolve_lightning_pages, dict),
            },
        )
        record_sets = RawRecordSets(
            object_permissions=tuple(results["object_permissions"] or ()),
            field_permissions=tuple(results["field_permissions"] or ()),
            system_permission_sets=tuple(results["system_permissions"] or ()),
            setup_entity_access=tuple(results["setup_entity_access"] or ()),
        )
        return record_sets, dict(results["lightning_pages"] or {})

    def _resolve_names(self, record_sets: RawRecordSets, lightning_pages: dict[str, str]) -> ResolvedNames:
        """第二波: 名称解析并发执行, 依赖第一波的 SetupEntityAccess."""
        apex_class_ids = record_sets.setup_entity_ids(SetupEntityType.APEX_CLASS)
        apex_page_ids = record_sets.setup_entity_ids(SetupEntityType.APEX_PAGE)
        results = self._run_wave(
            "resolve_names",
            {
                "apex_classes": (lambda: self.resolver.resolve_apex_classes(apex_class_ids), dict),
                "apex_pages": (lambda: self.resolver.resolve_apex_pages(apex_page_ids), dict),
                "record_types": (self.resolver.resolve_record_types, dict),
                "custom_tabs": (self.resolver.resolve_custom_tabs, dict),
                "custom_apps": (self.resolver.resolve_custom_apps, dict),
            },
        )
        return ResolvedNames(
            apex_classes=results["apex_classes"],
            apex_pages=results["apex_pages"],
            record_types=results["record_types"],
            custom_tabs=results["custom_tabs"],
            custom_apps=results["custom_apps"],
            lightning_pages=lightning_pages,
        )

    def _run_wave(self, phase: str, tasks: Mapping[str, WaveTask]) -> dict[str, Any]:
        """并发执行一波查询, 每个任务只写入自己的结果槽位."""
        results: dict[str, Any] = {}
        worker_count = min(self.max_workers, len(tasks)) or 1
        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix=f"normalizer-{phase}") as executor:
            futures = {name: executor.submit(_with_caller_context(loader)) for name, (loader, _) in tasks.items()}
            for name, future in futures.items():
                try:
                    value = future.result()
                except Exception as exc:  # noqa: BLE001
                    self.logger.warning(
                        "normalizer_query_failed",
                        module=MODULE,
                        mode=self.mode,
                        phase=phase,
                        query=name,
                        error=str(exc),
                        error_type=exc.__class__.__name__,
                    )
                    value = tasks[name][1]()
                else:
                    self.logger.debug(
                        "normalizer_query_completed",
                        module=MODULE,
                        mode=self.mode,
                        phase=phase,
                        query=name,
                        records=len(value) if value is not None else 0,
                    )
                results[name] = value
        return results

    def _basic_lookup(self, query: str, loader: Callable[[], T]) -> T:
        """基础查询(目录/映射/基本信息)失败不属于部分数据, 直接上抛."""
        try:
            return loader()
        except SOURCE_QUERY_EXCEPTIONS as exc:
            self.logger.error(
                "normalizer_basic_lookup_failed",
                module=MODULE,
                mode=self.mode,
                phase="basic_lookup",
                query=query,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            raise ExternalServiceError(extra={"query": query}) from exc

    def _log_skipped(self, requested: Sequence[str], resolved: Sequence[str]) -> None:
        resolved_ids = set(resolved)
        skipped = [entity_id for entity_id in requested if entity_id not in resolved_ids]
        if skipped:
            self.logger.info(
                "normalizer_owners_skipped",
                module=MODULE,
                mode=self.mode,
                phase="resolve_owners",
                skipped_ids=skipped,
            )

    def _log_completed(self, requested: int, normalized: int, started_at: float) -> None:
        self.logger.info(
            "normalizer_completed",
            module=MODULE,
            mode=self.mode,
            phase="completed",
            requested=requested,
            normalized=normalized,
            duration_ms=round((time.perf_counter() - started_at) * 1000),
        )


class ProfileNormalizer(BaseNormalizer):
    """Profile 模式: 经隐式 PermissionSet 查询权限, 并读取 Profile 元数据中的可见性."""

    mode = "profile"

    def normalize(self, profile_ids: Sequence[str]) -> list[CanonicalProfile]:
        """规范化一组 Profile.

        Args:
            profile_ids: Profile ID 列表, 重复 ID 只保留首次出现.

        Returns:
            list[CanonicalProfile]: 与输入顺序一致; 找不到基本信息或隐式 PermissionSet 的 ID 被跳过.

        Raises:
            ExternalServiceError: Profile 目录或 Profile -> PermissionSet 映射查询失败.

        """
        started_at = time.perf_counter()
        requested = dedupe_ids(profile_ids)
        if not requested:
            return []

        profiles = {
            str(record["Id"]): record
            for record in self._basic_lookup("list_profiles", self.source.list_profiles)
            if record.get("Id")
        }
        profile_mapping = self._basic_lookup(
            "get_profile_permission_set_ids",
            lambda: self.source.get_profile_permission_set_ids(requested),
        )
        owner_resolution = OwnerResolution.from_profile_mapping(
            {profile_id: profile_mapping[profile_id] for profile_id in requested if profile_id in profile_mapping},
        )
        owner_ids = [
            profile_id
            for profile_id in requested
            if profile_id in profiles and owner_resolution.permission_set_for(profile_id)
        ]
        self._log_skipped(requested, owner_ids)
        if not owner_ids:
            self._log_completed(len(requested), 0, started_at)
            return []

        record_sets, names = self._collect(owner_ids, owner_resolution)
        visibility = self._fetch_visibility(owner_ids)
        bundles = group_permissions(owner_ids, owner_resolution, record_sets, names)

        normalized = [
            build_canonical_profile(
                profile_id,
                str(profiles[profile_id].get("Name") or profile_id),
                bundles[profile_id],
                visibility.get(profile_id),
            )
            for profile_id in owner_ids
        ]
        self._log_completed(len(requested), len(normalized), started_at)
        return normalized

    def _fetch_visibility(self, profile_ids: Sequence[str]) -> Mapping[str, ProfileVisibilityMetadata]:
        """Profile 元数据可见性, 失败时降级为空并由构建阶段回退推导."""
        try:
            return self.source.get_profile_visibility_metadata(list(profile_ids)) or {}
        except Exception as exc:  # noqa: BLE001
            self.logger.warning(
                "normalizer_query_failed",
                module=MODULE,
                mode=self.mode,
                phase="fetch_visibility",
                query="profile_visibility_metadata",
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return {}


class PermissionSetNormalizer(BaseNormalizer):
    """PermissionSet 模式: owner 即 PermissionSet 本身, 不读取可见性元数据."""

    mode = "permission_set"

    def normalize(self, permission_set_ids: Sequence[str]) -> list[CanonicalProfile]:
        """规范化一组 PermissionSet.

        Raises:
            ExternalServiceError: PermissionSet 基本信息查询失败.

        """
        started_at = time.perf_counter()
        requested = dedupe_ids(permission_set_ids)
        if not requested:
            return []

        infos = {
            str(info["Id"]): info
            for info in self._basic_lookup(
                "get_permission_sets",
                lambda: self.source.get_permission_sets(requested),
            )
            if info.get("Id")
        }
        owner_ids = [permission_set_id for permission_set_id in requested if permission_set_id in infos]
        self._log_skipped(requested, owner_ids)
        if not owner_ids:
            self._log_completed(len(requested), 0, started_at)
            return []

        owner_resolution = OwnerResolution.identity(owner_ids)
        record_sets, names = self._collect(owner_ids, owner_resolution)
        bundles = group_permissions(owner_ids, owner_resolution, record_sets, names)

        normalized = [
            build_canonical_profile(
                permission_set_id,
                display_name_for_permission_set(infos[permission_set_id]),
                bundles[permission_set_id],
            )
            for permission_set_id in owner_ids
        ]
        self._log_completed(len(requested), len(normalized), started_at)
        return normalized


__all__ = ["BaseNormalizer", "PermissionSetNormalizer", "ProfileNormalizer", "dedupe_ids"]
