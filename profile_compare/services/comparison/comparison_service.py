"""对比服务: 规范化 + 差异对比的编排入口.

职责:
- 校验对比目标数量, 组织规范化器与差异引擎
- 不做 HTTP 解析、不返回 Response
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from profile_compare.core.exceptions import ValidationError
from profile_compare.services.comparison.diff_engine import DiffEngine
from profile_compare.services.normalization.orchestrator import (
    PermissionSetNormalizer,
    ProfileNormalizer,
    dedupe_ids,
)
from profile_compare.settings import DEFAULT_NORMALIZER_MAX_WORKERS
from profile_compare.types.comparison import ComparisonOutcome
from profile_compare.utils.structlog_config import get_comparison_logger
from profile_compare.utils.time_utils import time_utils

if TYPE_CHECKING:
    from profile_compare.services.permission_source import PermissionDataSource
    from profile_compare.types import CanonicalProfile

MODULE = "comparison"
MIN_COMPARISON_TARGETS = 2


class ComparisonService:
    """Profile / PermissionSet 对比服务."""

    def __init__(
        self,
        source: PermissionDataSource,
        *,
        normalizer_max_workers: int = DEFAULT_NORMALIZER_MAX_WORKERS,
        clock: Callable[[], datetime] = time_utils.now,
    ) -> None:
        self._profile_normalizer = ProfileNormalizer(source, max_workers=normalizer_max_workers)
        self._permission_set_normalizer = PermissionSetNormalizer(source, max_workers=normalizer_max_workers)
        self._engine = DiffEngine(clock=clock)
        self._logger = get_comparison_logger()

    def compare_profiles(self, profile_ids: Sequence[str]) -> ComparisonOutcome:
        """对比多个 Profile.

        Args:
            profile_ids: Profile ID 列表, 去重后至少 2 个.

        Returns:
            ComparisonOutcome: 对比结果与参与对比的规范化文档.

        Raises:
            ValidationError: 对比目标不足 2 个, 或规范化后可用文档不足 2 个.
            ExternalServiceError: 基础查询失败.

        """
        requested = dedupe_ids(profile_ids)
        self._ensure_enough_targets(requested, stage="request")
        started_at = time.perf_counter()
        profiles = self._profile_normalizer.normalize(requested)
        return self._compare(profiles, mode="profile", requested=len(requested), started_at=started_at)

    def compare_permission_sets(
        self,
        permission_set_ids: Sequence[str],
        include_profile_ids: Sequence[str] = (),
    ) -> ComparisonOutcome:
        """对比多个 PermissionSet, 可混入 Profile.

        混合模式下 Profile 排在前面(按请求顺序), 其后为 PermissionSet.

        Raises:
            ValidationError: 对比目标不足 2 个, 或规范化后可用文档不足 2 个.
            ExternalServiceError: 基础查询失败.

        """
        permission_set_requested = dedupe_ids(permission_set_ids)
        profile_requested = dedupe_ids(include_profile_ids)
        self._ensure_enough_targets([*profile_requested, *permission_set_requested], stage="request")

        started_at = time.perf_counter()
        profiles: list[CanonicalProfile] = []
        if profile_requested:
            profiles.extend(self._profile_normalizer.normalize(profile_requested))
        if permission_set_requested:
            profiles.extend(self._permission_set_normalizer.normalize(permission_set_requested))
        return self._compare(
            profiles,
            mode="mixed" if profile_requested else "permission_set",
            requested=len(profile_requested) + len(permission_set_requested),
            started_at=started_at,
        )

    def _compare(
        self,
        profiles: list[CanonicalProfile],
        *,
        mode: str,
        requested: int,
        started_at: float,
    ) -> ComparisonOutcome:
        self._ensure_enough_targets([profile["id"] for profile in profiles], stage="normalized")
        result = self._engine.compare(profiles)
        self._logger.info(
            "comparison_completed",
            module=MODULE,
            mode=mode,
            requested=requested,
            compared=len(profiles),
            total_differences=result.summary.total_differences,
            duration_ms=round((time.perf_counter() - started_at) * 1000),
        )
        return ComparisonOutcome(result=result, profiles=tuple(profiles))

    def _ensure_enough_targets(self, ids: Sequence[str], *, stage: str) -> None:
        if len(set(ids)) >= MIN_COMPARISON_TARGETS:
            return
        self._logger.info(
            "comparison_targets_insufficient",
            module=MODULE,
            stage=stage,
            targets=len(set(ids)),
        )
        raise ValidationError(
            message_key="COMPARISON_TARGETS_REQUIRED",
            extra={"stage": stage, "targets": len(set(ids))},
        )


__all__ = ["MIN_COMPARISON_TARGETS", "ComparisonService"]
