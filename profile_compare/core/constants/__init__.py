"""常量模块。

集中管理系统常量，包括错误消息、HTTP 状态码、权限模型字段与差异分类等。
"""

# 导入HTTP状态码常量（使用Python标准库）
from http import HTTPStatus as HttpStatus

from .permission_constants import (
    CATEGORY_LABELS,
    CATEGORY_SUMMARY_KEYS,
    DiffCategory,
    DiffType,
    SetupEntityType,
    TabVisibility,
)
from .system_constants import (
    ErrorCategory,
    ErrorMessages,
    ErrorSeverity,
    LogLevel,
    SuccessMessages,
)

__all__ = [
    "CATEGORY_LABELS",
    "CATEGORY_SUMMARY_KEYS",
    "DiffCategory",
    "DiffType",
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "HttpStatus",
    "LogLevel",
    "SetupEntityType",
    "SuccessMessages",
    "TabVisibility",
]
