"""Flask-RESTX Api 定制.

- 成功/错误响应沿用统一 JSON envelope
- 将 RestX 内部错误统一映射为 `unified_error_response`
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Response, jsonify, request
from flask_restx import Api

from profile_compare.utils.response_utils import unified_error_response, unified_success_response
from profile_compare.utils.structlog_config import ErrorContext

if TYPE_CHECKING:
    from profile_compare.types import JsonDict


class ProfileCompareApi(Api):
    """统一错误封套的 RestX Api."""

    def render_root(self) -> tuple[JsonDict, int]:  # type: ignore[override]
        """`/api/v1/` 可发现性入口."""
        prefix = request.path.rstrip("/")
        docs_url = f"{prefix}{self._doc}" if self._doc else None
        return unified_success_response(
            data={
                "docs_url": docs_url,
                "openapi_url": f"{prefix}/openapi.json",
                "health_ping_url": f"{prefix}/health/ping",
                "comparisons_url": f"{prefix}/comparisons",
                "exports_url": f"{prefix}/exports",
            },
            message="API v1 已就绪",
        )

    def handle_error(self, e: Exception) -> Response:  # type: ignore[override]
        payload, status_code = unified_error_response(e, context=ErrorContext(e, request))
        response = jsonify(payload)
        response.status_code = status_code
        return response
