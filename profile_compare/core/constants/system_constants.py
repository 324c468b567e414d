"""Profile Compare - 系统常量定义模块

统一管理错误分类、严重度与对外文案.
"""

from enum import Enum


class LogLevel(Enum):
    """日志级别枚举."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """错误分类枚举."""

    VALIDATION = "validation"
    BUSINESS = "business"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    EXTERNAL = "external"
    NETWORK = "network"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """错误严重程度枚举."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# 错误消息常量
class ErrorMessages:
    """错误消息常量."""

    # 通用错误
    INTERNAL_ERROR = "服务器内部错误"
    VALIDATION_ERROR = "数据验证失败"
    PERMISSION_DENIED = "权限不足"
    INVALID_REQUEST = "无效的请求"
    AUTHENTICATION_REQUIRED = "请先连接 CRM 组织"
    JSON_REQUIRED = "请求必须是JSON格式"
    REQUEST_DATA_EMPTY = "请求数据不能为空"

    # 对比/导出
    COMPARISON_TARGETS_REQUIRED = "至少需要选择 2 个对比对象"
    COMPARISON_DATA_REQUIRED = "缺少对比数据"
    COMPARISON_DATA_INVALID = "对比数据结构不合法"
    EXPORT_FORMAT_INVALID = "不支持的导出格式"

    # 外部依赖
    UPSTREAM_QUERY_FAILED = "CRM 元数据查询失败"


# 成功消息常量
class SuccessMessages:
    """成功消息常量."""

    OPERATION_SUCCESS = "操作成功"
    COMPARISON_COMPLETED = "对比完成"
    EXPORT_COMPLETED = "导出完成"


__all__ = [
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "LogLevel",
    "SuccessMessages",
]
