"""API v1 decorators.

说明:
- API v1 的错误语义始终为 JSON
- 统一通过 AppError 体系让全局错误处理器输出标准错误封套
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import TYPE_CHECKING, ParamSpec, TypeVar

from flask import current_app, request

from profile_compare.core.constants.system_constants import ErrorMessages
from profile_compare.core.exceptions import AuthenticationError

if TYPE_CHECKING:
    from profile_compare.services.permission_source import PermissionDataSource

P = ParamSpec("P")
R = TypeVar("R")

DATA_SOURCE_FACTORY_KEY = "permission_data_source_factory"

DataSourceFactory = Callable[[], "PermissionDataSource | None"]


def _authentication_error(reason: str) -> AuthenticationError:
    return AuthenticationError(
        ErrorMessages.AUTHENTICATION_REQUIRED,
        message_key="AUTHENTICATION_REQUIRED",
        extra={
            "request_path": request.path,
            "request_method": request.method,
            "reason": reason,
        },
    )


def get_data_source_factory() -> DataSourceFactory | None:
    return current_app.extensions.get(DATA_SOURCE_FACTORY_KEY)


def api_connection_required(func: Callable[P, R]) -> Callable[P, R]:
    """要求宿主应用已注册 CRM 数据源工厂(API v1 专用)."""

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        if get_data_source_factory() is None:
            raise _authentication_error("data_source_factory_missing")
        return func(*args, **kwargs)

    return wrapper


def resolve_data_source() -> PermissionDataSource:
    """为当前请求获取数据源.

    工厂返回 None 表示当前会话未连接 CRM 组织.

    Raises:
        AuthenticationError: 未注册工厂或当前会话无可用数据源.

    """
    factory = get_data_source_factory()
    if factory is None:
        raise _authentication_error("data_source_factory_missing")
    source = factory()
    if source is None:
        raise _authentication_error("data_source_unavailable")
    return source
