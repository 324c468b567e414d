import pytest

from profile_compare.core.constants.permission_constants import DiffCategory
from profile_compare.core.exceptions import ExternalServiceError, ValidationError
from profile_compare.services.comparison import ComparisonService
from profile_compare.services.permission_source import PermissionSourceError
from tests.fixtures.permission_records import (
    PROFILE_SALES,
    PROFILE_SUPPORT,
    PROFILE_WITHOUT_PERMISSION_SET,
    PS_API,
    PS_REPORTS,
    FakePermissionDataSource,
)


@pytest.mark.unit
def test_compare_profiles_returns_result_and_profiles(fake_source, fixed_clock) -> None:
    outcome = ComparisonService(fake_source, clock=fixed_clock).compare_profiles([PROFILE_SALES, PROFILE_SUPPORT])

    assert [entity.id for entity in outcome.result.entities] == [PROFILE_SALES, PROFILE_SUPPORT]
    assert [profile["displayName"] for profile in outcome.profiles] == ["Sales User", "Support User"]
    summary = outcome.result.summary
    assert summary.count_for(DiffCategory.APEX_CLASS) == 2
    assert summary.count_for(DiffCategory.SYSTEM_PERMISSION) == 2
    assert summary.count_for(DiffCategory.APP_VISIBILITY) == 1

    payload = outcome.to_payload()
    assert set(payload) == {"comparison", "profiles"}
    assert payload["comparison"]["timestamp"] == "2025-01-01T12:00:00.123Z"
    assert payload["comparison"]["summary"]["totalDifferences"] == summary.total_differences


@pytest.mark.unit
@pytest.mark.parametrize("profile_ids", [[], [PROFILE_SALES], [PROFILE_SALES, PROFILE_SALES, ""]])
def test_compare_profiles_requires_two_targets(fake_source, profile_ids: list[str]) -> None:
    with pytest.raises(ValidationError) as exc_info:
        ComparisonService(fake_source).compare_profiles(profile_ids)

    assert exc_info.value.message_key == "COMPARISON_TARGETS_REQUIRED"
    assert exc_info.value.extra["stage"] == "request"
    assert fake_source.calls == []


@pytest.mark.unit
def test_compare_profiles_requires_two_normalized_documents(fake_source) -> None:
    with pytest.raises(ValidationError) as exc_info:
        ComparisonService(fake_source).compare_profiles([PROFILE_SALES, PROFILE_WITHOUT_PERMISSION_SET])

    assert exc_info.value.extra == {"stage": "normalized", "targets": 1}


@pytest.mark.unit
def test_compare_profiles_propagates_basic_lookup_failure(org_records) -> None:
    source = FakePermissionDataSource(
        org_records,
        failures={"get_profile_permission_set_ids": PermissionSourceError("session expired")},
    )

    with pytest.raises(ExternalServiceError):
        ComparisonService(source).compare_profiles([PROFILE_SALES, PROFILE_SUPPORT])


@pytest.mark.unit
def test_compare_permission_sets(fake_source) -> None:
    outcome = ComparisonService(fake_source).compare_permission_sets([PS_REPORTS, PS_API])

    assert [entity.display_name for entity in outcome.result.entities] == [
        "[PS] Report Builder",
        "[PS] Api_Access",
    ]
    assert fake_source.called("list_profiles") == []


@pytest.mark.unit
def test_compare_permission_sets_mixed_mode_puts_profiles_first(fake_source) -> None:
    outcome = ComparisonService(fake_source).compare_permission_sets(
        [PS_REPORTS],
        include_profile_ids=[PROFILE_SUPPORT, PROFILE_SALES],
    )

    assert [entity.id for entity in outcome.result.entities] == [PROFILE_SUPPORT, PROFILE_SALES, PS_REPORTS]


@pytest.mark.unit
def test_compare_permission_sets_counts_profiles_toward_minimum(fake_source) -> None:
    outcome = ComparisonService(fake_source).compare_permission_sets([PS_API], include_profile_ids=[PROFILE_SALES])

    assert [entity.id for entity in outcome.result.entities] == [PROFILE_SALES, PS_API]

    with pytest.raises(ValidationError):
        ComparisonService(fake_source).compare_permission_sets([PS_API])
