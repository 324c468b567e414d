"""Comparisons namespace: Profile / PermissionSet 权限对比."""

from __future__ import annotations

from typing import ClassVar

from flask import current_app, request
from flask_restx import Namespace, fields

from profile_compare.api.v1.models.envelope import get_error_envelope_model, make_success_envelope_model
from profile_compare.api.v1.resources.base import BaseResource
from profile_compare.api.v1.resources.decorators import api_connection_required, resolve_data_source
from profile_compare.core.constants.system_constants import SuccessMessages
from profile_compare.schemas.comparisons import PermissionSetComparisonPayload, ProfileComparisonPayload
from profile_compare.schemas.validation import validate_or_raise
from profile_compare.services.comparison import ComparisonService
from profile_compare.settings import DEFAULT_NORMALIZER_MAX_WORKERS

ns = Namespace("comparisons", description="权限对比")

ErrorEnvelope = get_error_envelope_model(ns)

ProfileComparisonPayloadModel = ns.model(
    "ProfileComparisonPayload",
    {
        "profileIds": fields.List(fields.String, required=True, description="Profile ID 列表(至少 2 个)"),
    },
)

PermissionSetComparisonPayloadModel = ns.model(
    "PermissionSetComparisonPayload",
    {
        "permissionSetIds": fields.List(fields.String, required=True, description="PermissionSet ID 列表"),
        "includeProfiles": fields.List(fields.String, required=False, description="一并对比的 Profile ID 列表"),
    },
)

ComparisonData = ns.model(
    "ComparisonData",
    {
        "comparison": fields.Raw(required=True, description="对比结果(entities/timestamp/differences/summary)"),
        "profiles": fields.List(fields.Raw, required=True, description="参与对比的规范化文档"),
    },
)

ComparisonSuccessEnvelope = make_success_envelope_model(ns, "ComparisonSuccessEnvelope", ComparisonData)


def _build_service() -> ComparisonService:
    return ComparisonService(
        resolve_data_source(),
        normalizer_max_workers=int(current_app.config.get("NORMALIZER_MAX_WORKERS", DEFAULT_NORMALIZER_MAX_WORKERS)),
    )


@ns.route("/profiles")
class ProfileComparisonResource(BaseResource):
    """Profile 对比资源."""

    method_decorators: ClassVar[list] = [api_connection_required]

    @ns.expect(ProfileComparisonPayloadModel, validate=False)
    @ns.response(200, "OK", ComparisonSuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(401, "Unauthorized", ErrorEnvelope)
    @ns.response(502, "Bad Gateway", ErrorEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    def post(self):
        """对比多个 Profile."""
        payload = validate_or_raise(ProfileComparisonPayload, request.get_json(silent=True) or {})

        def _execute():
            outcome = _build_service().compare_profiles(payload.profile_ids)
            return self.success(
                data=outcome.to_payload(),
                message=SuccessMessages.COMPARISON_COMPLETED,
                meta={"total_differences": outcome.result.summary.total_differences},
            )

        return self.safe_call(
            _execute,
            module="comparisons",
            action="compare_profiles",
            public_error="Profile 对比失败",
            context={"profile_count": len(payload.profile_ids)},
        )


@ns.route("/permission-sets")
class PermissionSetComparisonResource(BaseResource):
    """PermissionSet 对比资源."""

    method_decorators: ClassVar[list] = [api_connection_required]

    @ns.expect(PermissionSetComparisonPayloadModel, validate=False)
    @ns.response(200, "OK", ComparisonSuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(401, "Unauthorized", ErrorEnvelope)
    @ns.response(502, "Bad Gateway", ErrorEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    def post(self):
        """对比多个 PermissionSet, 可混入 Profile."""
        payload = validate_or_raise(PermissionSetComparisonPayload, request.get_json(silent=True) or {})

        def _execute():
            outcome = _build_service().compare_permission_sets(
                payload.permission_set_ids,
                include_profile_ids=payload.include_profiles,
            )
            return self.success(
                data=outcome.to_payload(),
                message=SuccessMessages.COMPARISON_COMPLETED,
                meta={"total_differences": outcome.result.summary.total_differences},
            )

        return self.safe_call(
            _execute,
            module="comparisons",
            action="compare_permission_sets",
            public_error="PermissionSet 对比失败",
            context={
                "permission_set_count": len(payload.permission_set_ids),
                "profile_count": len(payload.include_profiles),
            },
        )
