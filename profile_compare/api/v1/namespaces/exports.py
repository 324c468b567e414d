"""Exports namespace: 对比结果导出为 CSV / JSON 附件.

服务端不持久化对比结果, 客户端将对比接口返回的 comparison 与 profiles 原样回传.
"""

from __future__ import annotations

from typing import ClassVar

from flask import Response, current_app, request
from flask_restx import Namespace, fields

from profile_compare.api.v1.models.envelope import get_error_envelope_model
from profile_compare.api.v1.resources.base import BaseResource
from profile_compare.api.v1.resources.decorators import api_connection_required
from profile_compare.schemas.comparisons import CsvExportPayload, JsonExportPayload
from profile_compare.schemas.validation import validate_or_raise
from profile_compare.services.files import ComparisonExportService

ns = Namespace("exports", description="对比结果导出")

ErrorEnvelope = get_error_envelope_model(ns)

CsvExportOptionsModel = ns.model(
    "CsvExportOptions",
    {
        "format": fields.String(
            required=False,
            description="导出格式",
            enum=["differences", "detailed", "summary"],
            example="differences",
        ),
        "includeUnchanged": fields.Boolean(required=False, description="是否包含未变化项"),
        "categories": fields.List(fields.String, required=False, description="分类过滤, 包含 all 表示不过滤"),
    },
)

JsonExportPayloadModel = ns.model(
    "JsonExportPayload",
    {
        "comparison": fields.Raw(required=True, description="对比结果"),
        "profiles": fields.List(fields.Raw, required=True, description="规范化文档"),
    },
)

CsvExportPayloadModel = ns.inherit(
    "CsvExportPayload",
    JsonExportPayloadModel,
    {"options": fields.Nested(CsvExportOptionsModel, required=False)},
)

_export_service = ComparisonExportService()
_COMPARISON_DATA_FIELDS = {"comparison": "COMPARISON_DATA_INVALID", "profiles": "COMPARISON_DATA_INVALID"}


@ns.route("/csv")
class CsvExportResource(BaseResource):
    """CSV 导出资源."""

    method_decorators: ClassVar[list] = [api_connection_required]

    @ns.expect(CsvExportPayloadModel, validate=False)
    @ns.response(200, "OK")
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(401, "Unauthorized", ErrorEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    def post(self):
        """导出 differences / detailed / summary CSV."""
        payload = validate_or_raise(
            CsvExportPayload,
            request.get_json(silent=True) or {},
            message_key_by_field=_COMPARISON_DATA_FIELDS,
        )
        include_unchanged = payload.options.include_unchanged
        if include_unchanged is None:
            include_unchanged = bool(current_app.config.get("EXPORT_INCLUDE_UNCHANGED_DEFAULT", False))

        def _execute() -> Response:
            result = _export_service.export_csv(
                payload.comparison_payload(),
                payload.profile_payloads(),
                {
                    "format": payload.options.format,
                    "includeUnchanged": include_unchanged,
                    "categories": payload.options.categories,
                },
            )
            return self.download(result)

        return self.safe_call(
            _execute,
            module="exports",
            action="export_csv",
            public_error="导出 CSV 失败",
            context={"format": payload.options.format, "include_unchanged": include_unchanged},
        )


@ns.route("/json")
class JsonExportResource(BaseResource):
    """JSON 导出资源."""

    method_decorators: ClassVar[list] = [api_connection_required]

    @ns.expect(JsonExportPayloadModel, validate=False)
    @ns.response(200, "OK")
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(401, "Unauthorized", ErrorEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    def post(self):
        """导出 JSON 附件."""
        payload = validate_or_raise(
            JsonExportPayload,
            request.get_json(silent=True) or {},
            message_key_by_field=_COMPARISON_DATA_FIELDS,
        )

        def _execute() -> Response:
            result = _export_service.export_json(payload.comparison_payload(), payload.profile_payloads())
            return self.download(result)

        return self.safe_call(
            _execute,
            module="exports",
            action="export_json",
            public_error="导出 JSON 失败",
            context={"profile_count": len(payload.profiles or [])},
        )
