"""Health namespace."""

from __future__ import annotations

from flask import current_app
from flask_restx import Namespace, fields

from profile_compare.api.v1.models.envelope import get_error_envelope_model, make_success_envelope_model
from profile_compare.api.v1.resources.base import BaseResource
from profile_compare.api.v1.resources.decorators import get_data_source_factory

ns = Namespace("health", description="健康检查")

PingData = ns.model(
    "HealthPingData",
    {
        "status": fields.String(required=True, description="服务状态", example="ok"),
    },
)

PingSuccessEnvelope = make_success_envelope_model(ns, "HealthPingSuccessEnvelope", PingData)
ErrorEnvelope = get_error_envelope_model(ns)

BasicData = ns.model(
    "HealthBasicData",
    {
        "status": fields.String(required=True, description="服务状态", example="healthy"),
        "version": fields.String(required=True, description="版本号", example="0.3.0"),
        "data_source_configured": fields.Boolean(required=True, description="是否已注册 CRM 数据源工厂"),
    },
)

BasicSuccessEnvelope = make_success_envelope_model(ns, "HealthBasicSuccessEnvelope", BasicData)


@ns.route("/ping")
class HealthPingResource(BaseResource):
    @ns.response(200, "OK", PingSuccessEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    def get(self):
        return self.success({"status": "ok"}, message="健康检查成功")


@ns.route("/basic")
class HealthBasicResource(BaseResource):
    @ns.response(200, "OK", BasicSuccessEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    def get(self):
        return self.safe_call(
            lambda: self.success(
                data={
                    "status": "healthy",
                    "version": current_app.config.get("APP_VERSION"),
                    "data_source_configured": get_data_source_factory() is not None,
                },
                message="服务运行正常",
            ),
            module="health",
            action="health_check",
            public_error="健康检查失败",
        )
