"""对比服务模块."""

from profile_compare.services.comparison.comparison_service import MIN_COMPARISON_TARGETS, ComparisonService
from profile_compare.services.comparison.diff_engine import DiffEngine, classify_values

__all__ = ["MIN_COMPARISON_TARGETS", "ComparisonService", "DiffEngine", "classify_values"]
