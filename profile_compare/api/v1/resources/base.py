"""Base Resource helpers.

- `success`: 统一成功封套
- `download`: 将导出结果包装为附件下载响应
- `safe_call`: 视图逻辑的日志与异常转换
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar, cast

from flask import Response
from flask_restx import Resource

from profile_compare.utils.response_utils import unified_success_response
from profile_compare.utils.route_safety import safe_route_call

if TYPE_CHECKING:
    from profile_compare.services.files.csv_export_result import CsvExportResult, JsonExportResult
    from profile_compare.types import ContextDict, JsonDict, JsonValue, LoggerExtra, RouteSafetyOptions

R = TypeVar("R")


class BaseResource(Resource):
    """统一封套与 safe_route_call 适配."""

    def success(
        self,
        data: object | None = None,
        message: object | None = None,
        *,
        status: int = 200,
        meta: Mapping[str, object] | None = None,
    ) -> tuple[JsonDict, int]:
        """返回 `(dict, status)`, 由 RestX 的 representation 负责序列化."""
        return unified_success_response(data=data, message=message, status=status, meta=meta)

    def download(self, result: CsvExportResult | JsonExportResult) -> Response:
        """导出结果 -> 附件响应, 文件名加引号以兼容含空格的名称."""
        return Response(
            result.content,
            mimetype=result.mimetype,
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )

    def safe_call(
        self,
        func: Callable[[], R],
        *,
        module: str,
        action: str,
        public_error: str,
        context: ContextDict | None = None,
        extra: LoggerExtra | None = None,
        **options: RouteSafetyOptions,
    ) -> R:
        return safe_route_call(
            func,
            module=module,
            action=action,
            public_error=public_error,
            context=cast("ContextDict | None", context),
            extra=cast("dict[str, JsonValue] | None", extra),
            **cast("dict[str, Any]", options),
        )
