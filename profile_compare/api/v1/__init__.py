"""API v1 (Flask-RESTX).

该包仅承载对外 JSON API 的路由层与 OpenAPI 文档能力,
对比与导出逻辑复用 services 层.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from flask import Blueprint, Response, jsonify

from profile_compare.api.v1.api import ProfileCompareApi
from profile_compare.api.v1.namespaces.comparisons import ns as comparisons_ns
from profile_compare.api.v1.namespaces.exports import ns as exports_ns
from profile_compare.api.v1.namespaces.health import ns as health_ns

if TYPE_CHECKING:
    from profile_compare.settings import Settings


def create_api_v1_blueprint(settings: Settings) -> Blueprint:
    """创建并配置 `/api/v1` Blueprint.

    - Swagger UI: `/api/v1/docs`(可配置关闭)
    - OpenAPI JSON: `/api/v1/openapi.json`
    """
    blueprint = Blueprint("api_v1", __name__)

    docs_path = "/docs" if settings.api_v1_docs_enabled else cast(str, False)
    api = ProfileCompareApi(
        blueprint,
        title=settings.app_name,
        version=settings.app_version,
        doc=docs_path,
    )

    api.add_namespace(health_ns, path="/health")
    api.add_namespace(comparisons_ns, path="/comparisons")
    api.add_namespace(exports_ns, path="/exports")

    @blueprint.get("/openapi.json")
    def openapi_json() -> tuple[Response, int]:
        return jsonify(api.__schema__), 200

    return blueprint
