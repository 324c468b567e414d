"""Profile Compare - Flask 应用初始化.

CRM Profile / PermissionSet 权限对比服务: 规范化、N 路差异对比与导出.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from flask import Flask, jsonify, request
from flask.typing import ResponseReturnValue

from profile_compare.api import register_api_blueprints
from profile_compare.api.v1.resources.decorators import DATA_SOURCE_FACTORY_KEY
from profile_compare.infra.logging import register_request_logging
from profile_compare.settings import Settings
from profile_compare.utils.response_utils import unified_error_response
from profile_compare.utils.structlog_config import ErrorContext, configure_structlog, get_system_logger

if TYPE_CHECKING:
    from profile_compare.services.permission_source import PermissionDataSource


def create_app(
    *,
    settings: Settings | None = None,
    data_source_factory: Callable[[], PermissionDataSource | None] | None = None,
) -> Flask:
    """创建 Flask 应用实例.

    Args:
        settings: 可选的配置对象,用于测试或多环境启动.
        data_source_factory: 为当前请求返回已认证 CRM 数据源的工厂.
            OAuth 会话由宿主应用管理; 未注册时对比与导出接口返回 401.

    Returns:
        Flask: Flask 应用实例.

    """
    resolved_settings = settings or Settings.load()
    app = Flask(__name__)

    configure_app(app, resolved_settings)
    configure_structlog(app)
    register_request_logging(app)

    if data_source_factory is not None:
        app.extensions[DATA_SOURCE_FACTORY_KEY] = data_source_factory

    register_api_blueprints(app, resolved_settings)

    @app.errorhandler(Exception)
    def handle_global_exception(error: Exception) -> ResponseReturnValue:
        """全局错误处理(API 蓝图之外的路由)."""
        payload, status_code = unified_error_response(error, context=ErrorContext(error, request))
        return jsonify(payload), status_code

    get_system_logger().info(
        "app_created",
        module="system",
        environment=resolved_settings.environment,
        normalizer_max_workers=resolved_settings.normalizer_max_workers,
        api_v1_docs_enabled=resolved_settings.api_v1_docs_enabled,
        data_source_configured=data_source_factory is not None,
    )
    return app


def configure_app(app: Flask, settings: Settings) -> None:
    """写入 Settings 提供的配置.

    Args:
        app: Flask 应用实例.
        settings: 统一配置对象,包含环境变量解析、默认值与校验结果.

    """
    app.config.from_mapping(settings.to_flask_config())
    app.config.setdefault("APPLICATION_ROOT", "/")
    app.json.ensure_ascii = False  # type: ignore[attr-defined]


__all__ = ["configure_app", "create_app"]
