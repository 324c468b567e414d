import pytest
import structlog
from flask import Flask
from structlog.testing import LogCapture

from profile_compare.core.exceptions import ExternalServiceError
from profile_compare.services.normalization import PermissionSetNormalizer, ProfileNormalizer
from profile_compare.services.permission_source import PermissionSourceError
from profile_compare.utils.logging.context_vars import request_id_var
from profile_compare.utils.structlog_config import StructlogConfig
from tests.fixtures.permission_records import (
    PROFILE_SALES,
    PROFILE_SUPPORT,
    PROFILE_WITHOUT_PERMISSION_SET,
    PS_API,
    PS_REPORTS,
    FakePermissionDataSource,
)

ALL_FALSE_OBJECT_PERMISSIONS = {
    "read": False,
    "create": False,
    "edit": False,
    "delete": False,
    "viewAll": False,
    "modifyAll": False,
}


@pytest.mark.unit
def test_profile_normalizer_builds_canonical_documents(fake_source) -> None:
    profiles = ProfileNormalizer(fake_source).normalize(
        [PROFILE_SALES, PROFILE_SUPPORT, PROFILE_WITHOUT_PERMISSION_SET],
    )

    assert [profile["id"] for profile in profiles] == [PROFILE_SALES, PROFILE_SUPPORT]
    sales, support = profiles

    assert sales["displayName"] == "Sales User"
    assert list(sales["objects"]) == ["Account", "Contact"]
    assert sales["objects"]["Account"]["permissions"] == {
        "read": True,
        "create": True,
        "edit": True,
        "delete": True,
        "viewAll": False,
        "modifyAll": False,
    }
    assert sales["objects"]["Account"]["fields"] == {
        "BrokenField": {"read": True, "edit": False},
        "Industry": {"read": True, "edit": True},
    }
    assert sales["systemPermissions"] == {"ApiEnabled": True, "ViewSetup": False}
    assert sales["apexClasses"] == ["AccountController"]
    assert sales["visualforcePages"] == ["AccountPage"]
    assert sales["lightningPages"] == ["Account_Record_Page"]
    assert sales["recordTypes"] == ["Account.Enterprise"]
    assert sales["tabVisibilities"] == {"Invoice__c": "DefaultOn"}
    assert sales["appVisibilities"] == {}

    assert support["objects"]["Contact"] == {
        "permissions": ALL_FALSE_OBJECT_PERMISSIONS,
        "fields": {"Email": {"read": True, "edit": False}},
    }
    assert support["systemPermissions"] == {"ApiEnabled": False, "ViewSetup": True}
    assert support["apexClasses"] == ["CaseController"]
    assert support["lightningPages"] == ["0M0Missing"]
    assert support["tabVisibilities"] == {}
    assert support["appVisibilities"] == {"Sales Console": {"visible": True, "default": False}}


@pytest.mark.unit
def test_profile_normalizer_runs_each_wave_query_once(fake_source) -> None:
    ProfileNormalizer(fake_source).normalize([PROFILE_SALES, PROFILE_SUPPORT])

    for method in (
        "get_object_permissions",
        "get_field_permissions",
        "get_permission_sets_with_system_permissions",
        "get_setup_entity_access",
        "get_lightning_pages",
        "get_record_types",
        "get_custom_tabs",
        "get_custom_apps",
    ):
        assert len(fake_source.called(method)) == 1, method
    assert fake_source.called("get_object_permissions") == [("0PSA", "0PSB")]
    assert fake_source.called("get_apex_class_names") == [("01pA", "01pB", "01pGone")]


@pytest.mark.unit
def test_profile_normalizer_tolerates_single_query_failure(org_records) -> None:
    source = FakePermissionDataSource(
        org_records,
        failures={"get_field_permissions": PermissionSourceError("QUERY_TIMEOUT")},
    )

    profiles = ProfileNormalizer(source).normalize([PROFILE_SALES, PROFILE_SUPPORT])

    sales, support = profiles
    assert sales["objects"]["Account"]["fields"] == {}
    assert "Contact" not in support["objects"]
    assert sales["objects"]["Account"]["permissions"]["delete"] is True
    assert sales["apexClasses"] == ["AccountController"]
    assert support["systemPermissions"] == {"ApiEnabled": False, "ViewSetup": True}


@pytest.mark.unit
def test_profile_normalizer_tolerates_name_resolution_failure(org_records) -> None:
    source = FakePermissionDataSource(
        org_records,
        failures={"get_apex_class_names": ConnectionError("reset"), "get_lightning_pages": TimeoutError()},
    )

    sales, support = ProfileNormalizer(source).normalize([PROFILE_SALES, PROFILE_SUPPORT])

    assert sales["apexClasses"] == []
    assert support["apexClasses"] == []
    assert sales["lightningPages"] == ["0M0A"]
    assert support["lightningPages"] == ["0M0Missing"]
    assert sales["visualforcePages"] == ["AccountPage"]


@pytest.fixture
def request_context_logs():
    """仅保留请求上下文处理器的日志捕获, 用于断言 request_id 关联."""
    capture = LogCapture()
    processors = structlog.get_config()["processors"]
    previous = list(processors)
    processors[:] = [StructlogConfig._add_request_context, capture]
    structlog.configure(processors=processors)
    try:
        yield capture.entries
    finally:
        processors[:] = previous
        structlog.configure(processors=processors)


@pytest.mark.unit
def test_profile_normalizer_worker_logs_keep_request_id(org_records, request_context_logs) -> None:
    source = FakePermissionDataSource(org_records, failures={"get_apex_class_names": ConnectionError("reset")})
    app = Flask(__name__)

    with app.test_request_context("/api/v1/comparisons/profiles"):
        token = request_id_var.set("req_wave_1")
        try:
            ProfileNormalizer(source, max_workers=4).normalize([PROFILE_SALES, PROFILE_SUPPORT])
        finally:
            request_id_var.reset(token)

    failures = [entry for entry in request_context_logs if entry["event"] == "normalizer_name_resolution_failed"]
    assert len(failures) == 1
    assert failures[0]["request_id"] == "req_wave_1"
    (completed,) = [entry for entry in request_context_logs if entry["event"] == "normalizer_completed"]
    assert completed["request_id"] == "req_wave_1"


@pytest.mark.unit
def test_profile_normalizer_basic_lookup_failure_raises(org_records) -> None:
    source = FakePermissionDataSource(org_records, failures={"list_profiles": PermissionSourceError("401")})

    with pytest.raises(ExternalServiceError) as exc_info:
        ProfileNormalizer(source).normalize([PROFILE_SALES, PROFILE_SUPPORT])

    assert exc_info.value.extra == {"query": "list_profiles"}
    assert source.called("get_object_permissions") == []


@pytest.mark.unit
def test_profile_normalizer_skips_unknown_ids_and_dedupes(fake_source) -> None:
    profiles = ProfileNormalizer(fake_source).normalize(["00eZ", PROFILE_SUPPORT, PROFILE_SUPPORT, ""])

    assert [profile["id"] for profile in profiles] == [PROFILE_SUPPORT]


@pytest.mark.unit
def test_profile_normalizer_returns_empty_when_nothing_resolves(fake_source) -> None:
    assert ProfileNormalizer(fake_source).normalize([]) == []
    assert ProfileNormalizer(fake_source).normalize([PROFILE_WITHOUT_PERMISSION_SET]) == []
    assert fake_source.called("get_object_permissions") == []


@pytest.mark.unit
def test_profile_normalizer_is_idempotent_and_worker_count_independent(fake_source) -> None:
    first = ProfileNormalizer(fake_source, max_workers=5).normalize([PROFILE_SALES, PROFILE_SUPPORT])
    second = ProfileNormalizer(fake_source, max_workers=1).normalize([PROFILE_SALES, PROFILE_SUPPORT])

    assert first == second


@pytest.mark.unit
def test_profile_normalizer_prefers_rich_visibility_metadata(fake_source, org_records) -> None:
    org_records.profile_visibility[PROFILE_SALES] = {
        "tabVisibilities": {"standard-Account": "DefaultOn", "Invoice__c": "DefaultOff"},
        "appVisibilities": {"Service Console": {"visible": True, "default": True}},
    }

    sales, support = ProfileNormalizer(fake_source).normalize([PROFILE_SALES, PROFILE_SUPPORT])

    assert sales["tabVisibilities"] == {"Invoice__c": "DefaultOff", "standard-Account": "DefaultOn"}
    assert sales["appVisibilities"] == {"Service Console": {"visible": True, "default": True}}
    assert support["appVisibilities"] == {"Sales Console": {"visible": True, "default": False}}


@pytest.mark.unit
def test_profile_normalizer_visibility_failure_falls_back(org_records) -> None:
    org_records.profile_visibility[PROFILE_SALES] = {"tabVisibilities": {"standard-Account": "DefaultOff"}}
    source = FakePermissionDataSource(
        org_records,
        failures={"get_profile_visibility_metadata": PermissionSourceError("metadata api down")},
    )

    sales, _ = ProfileNormalizer(source).normalize([PROFILE_SALES, PROFILE_SUPPORT])

    assert sales["tabVisibilities"] == {"Invoice__c": "DefaultOn"}


@pytest.mark.unit
def test_permission_set_normalizer_builds_prefixed_documents(fake_source) -> None:
    profiles = PermissionSetNormalizer(fake_source).normalize([PS_REPORTS, PS_API, "0PSMissing"])

    assert [profile["displayName"] for profile in profiles] == ["[PS] Report Builder", "[PS] Api_Access"]
    reports, api = profiles
    assert reports["objects"]["Opportunity"]["permissions"]["read"] is True
    assert reports["systemPermissions"] == {"RunReports": True}
    assert reports["apexClasses"] == ["AccountController"]
    assert api["systemPermissions"] == {"ApiEnabled": True}
    assert fake_source.called("get_profile_visibility_metadata") == []
    assert fake_source.called("list_profiles") == []


@pytest.mark.unit
def test_permission_set_normalizer_basic_lookup_failure_raises(org_records) -> None:
    source = FakePermissionDataSource(org_records, failures={"get_permission_sets": OSError("dns")})

    with pytest.raises(ExternalServiceError):
        PermissionSetNormalizer(source).normalize([PS_REPORTS, PS_API])
