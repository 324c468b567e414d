"""Profile Compare 的结构化日志配置与辅助函数."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, cast

import structlog
from flask import Flask, current_app, g, has_request_context

from profile_compare.core.constants.system_constants import ErrorSeverity
from profile_compare.core.exceptions import AppError
from profile_compare.settings import APP_VERSION
from profile_compare.types import ContextDict, JsonValue, LoggerExtra, StructlogEventDict
from profile_compare.utils.logging.context_vars import request_id_var
from profile_compare.utils.logging.error_adapter import (
    ErrorContext,
    ErrorMetadata,
    build_public_context,
    derive_error_metadata,
    get_error_suggestions,
)

if TYPE_CHECKING:
    from structlog.typing import BindableLogger, Processor

LogField = JsonValue | ContextDict | LoggerExtra
ErrorPayload = dict[str, LogField]


class StructlogConfig:
    """structlog 配置核心类.

    负责配置 structlog 的处理器链, 并在 Flask 应用上同步日志级别.

    Attributes:
        configured: 是否已配置标志.

    Example:
        >>> config = StructlogConfig()
        >>> config.configure(app)
        >>> logger = get_logger('my_module')

    """

    def __init__(self) -> None:
        self.configured = False

    def configure(self, app: Flask | None = None) -> None:
        """初始化 structlog 处理器(幂等).

        Args:
            app: Flask 应用实例,可选.如果提供,将按 LOG_LEVEL 设置根日志级别.

        """
        if not self.configured:
            processors = [
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                self._add_request_context,
                self._add_global_context,
                self._get_renderer(),
            ]
            structlog.configure(
                processors=cast("list[structlog.types.Processor]", processors),
                context_class=dict,
                logger_factory=structlog.stdlib.LoggerFactory(),
                wrapper_class=structlog.stdlib.BoundLogger,
                cache_logger_on_first_use=True,
            )
            self.configured = True

        if app is not None:
            self._attach_app(app)

    @staticmethod
    def _attach_app(app: Flask) -> None:
        log_level_name = str(app.config.get("LOG_LEVEL", "INFO"))
        root_logger = logging.getLogger()
        if not root_logger.handlers:
            logging.basicConfig(format="%(message)s", stream=sys.stdout)
        root_logger.setLevel(getattr(logging, log_level_name, logging.INFO))

    @staticmethod
    def _add_request_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: StructlogEventDict,
    ) -> StructlogEventDict:
        """向事件字典写入请求 ID."""
        if has_request_context():
            event_dict["request_id"] = request_id_var.get()
        return event_dict

    @staticmethod
    def _add_global_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: StructlogEventDict,
    ) -> StructlogEventDict:
        """附加应用名、版本等全局上下文."""
        try:
            event_dict["app_name"] = current_app.config["APP_NAME"]
            event_dict["app_version"] = current_app.config["APP_VERSION"]
        except (RuntimeError, KeyError):
            event_dict["app_name"] = "Profile Compare"
            event_dict["app_version"] = APP_VERSION

        logger_name = getattr(_logger, "name", "unknown")
        event_dict["logger_name"] = logger_name
        return event_dict

    @staticmethod
    def _get_renderer() -> Processor:
        """终端输出可读格式,否则输出 JSON 行."""
        if sys.stdout.isatty():
            return structlog.dev.ConsoleRenderer(colors=True)
        return structlog.processors.JSONRenderer()


structlog_config = StructlogConfig()


def get_logger(name: str) -> structlog.BoundLogger:
    """获取结构化日志记录器.

    Args:
        name: 日志记录器名称,通常使用模块名.

    Returns:
        绑定的 structlog 日志记录器实例.

    Example:
        >>> logger = get_logger('normalizer')
        >>> logger.info('permission_sets_grouped', matched=12)

    """
    structlog_config.configure()
    return structlog.get_logger(name)


def configure_structlog(app: Flask) -> None:
    """配置 structlog 并注册 Flask 钩子."""
    structlog_config.configure(app)

    @app.teardown_appcontext
    def log_teardown_error(exception: BaseException | None) -> None:
        if exception:
            get_logger("app").error("app_request_teardown_error", module="system", exception=str(exception))


def get_system_logger() -> structlog.BoundLogger:
    """返回系统级 logger."""
    return get_logger("system")


def get_normalizer_logger() -> structlog.BoundLogger:
    """返回规范化流水线 logger.

    Returns:
        structlog.BoundLogger: 记录上游查询降级、分组命中率等事件.

    """
    return get_logger("normalizer")


def get_comparison_logger() -> structlog.BoundLogger:
    """返回对比/导出 logger."""
    return get_logger("comparison")


def enhanced_error_handler(
    error: Exception,
    context: ErrorContext | None = None,
    *,
    extra: LoggerExtra | None = None,
) -> ErrorPayload:
    """增强的错误处理器.

    将异常转换为结构化的错误响应,包含错误分类、严重级别和建议.

    Args:
        error: 异常对象.
        context: 错误上下文,可选.如果未提供会自动创建.
        extra: 额外的上下文信息,可选.

    Returns:
        结构化的错误响应字典,包含 error_id/category/severity/message/suggestions/context 等字段.

    """
    context = context or ErrorContext(error)
    context.ensure_request()

    metadata = derive_error_metadata(error)
    public_context = build_public_context(context)

    extra_payload: dict[str, JsonValue] = {}
    if isinstance(error, AppError) and error.extra:
        extra_payload.update(error.extra)
    if extra:
        extra_payload.update(extra)

    payload: ErrorPayload = {
        "error": True,
        "error_id": context.error_id,
        "category": metadata.category.value,
        "severity": metadata.severity.value,
        "message_code": metadata.message_key,
        "message": metadata.message,
        "timestamp": context.timestamp.isoformat(),
        "recoverable": metadata.recoverable,
        "suggestions": get_error_suggestions(metadata.category),
        "context": public_context,
    }

    if extra_payload:
        payload["extra"] = extra_payload

    if has_request_context():
        # 供请求完成事件关联本次错误
        g._request_error_id = context.error_id
        g._request_error_type = error.__class__.__name__

    _log_enhanced_error(error, metadata, payload)
    return payload


def _log_enhanced_error(error: Exception, metadata: ErrorMetadata, payload: ErrorPayload) -> None:
    """根据严重度输出增强错误."""
    log_kwargs: dict[str, JsonValue | ContextDict | LoggerExtra] = {
        "error_id": payload["error_id"],
        "category": payload["category"],
        "severity": payload["severity"],
        "message_code": payload.get("message_code"),
        "message": str(payload.get("message", "")),
        "error_type": error.__class__.__name__,
        "context": payload.get("context"),
    }
    if "extra" in payload:
        log_kwargs["extra"] = payload["extra"]

    logger = get_logger("app")
    if metadata.severity == ErrorSeverity.CRITICAL:
        logger.critical("app_error_handled", module="error_handler", **log_kwargs)
    elif metadata.severity == ErrorSeverity.HIGH:
        logger.error("app_error_handled", module="error_handler", exc_info=error, **log_kwargs)
    else:
        logger.warning("app_error_handled", module="error_handler", **log_kwargs)


__all__ = [
    "ErrorContext",
    "ErrorMetadata",
    "configure_structlog",
    "enhanced_error_handler",
    "get_comparison_logger",
    "get_logger",
    "get_normalizer_logger",
    "get_system_logger",
]
