import csv
import io
import json

import pytest

from profile_compare.core.exceptions import ValidationError
from profile_compare.services.comparison import DiffEngine
from profile_compare.services.files.comparison_export_service import (
    ComparisonExportService,
    format_category,
    format_cell_value,
)
from tests.fixtures.canonical_profiles import make_profile, object_access


@pytest.fixture
def profiles() -> list:
    return [
        make_profile(
            "p1",
            "Sales User",
            objects={"Account": object_access(fields={"Industry": {"read": True, "edit": True}}, read=True)},
            apexClasses=["AccountController"],
            tabVisibilities={"Invoice__c": "DefaultOn"},
        ),
        make_profile(
            "p2",
            "=HYPERLINK()",
            objects={"Account": object_access(fields={"Industry": {"read": True, "edit": False}}, read=True)},
            appVisibilities={"Sales Console": {"visible": True, "default": False}},
        ),
    ]


@pytest.fixture
def comparison(profiles: list, fixed_now) -> dict:
    return DiffEngine().compare(profiles, compared_at=fixed_now).to_payload()


@pytest.fixture
def service(fixed_clock) -> ComparisonExportService:
    return ComparisonExportService(clock=fixed_clock)


def _rows(content: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(content)))


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, "Yes"), (False, "No"), (None, ""), ("DefaultOn", "DefaultOn")],
)
def test_format_cell_value(value: object, expected: str) -> None:
    assert format_cell_value(value) == expected


@pytest.mark.unit
def test_format_category_falls_back_to_raw_value() -> None:
    assert format_category("apexClass") == "Apex Class"
    assert format_category("somethingElse") == "somethingElse"


@pytest.mark.unit
def test_export_differences_csv_skips_unchanged(service, comparison) -> None:
    result = service.export_differences_csv(comparison)
    rows = _rows(result.content)

    assert rows[0] == ["Category", "Object", "Field/Permission", "Diff Type", "Sales User", "'=HYPERLINK()"]
    assert rows[1:] == [
        ["Field Permission", "Account", "Industry.edit", "changed", "Yes", "No"],
        ["Apex Class", "", "AccountController", "removed", "Yes", "No"],
        ["Tab Visibility", "", "Invoice__c", "changed", "DefaultOn", "Hidden"],
        ["App Visibility", "", "Sales Console.visible", "changed", "No", "Yes"],
    ]
    assert result.filename == "profile-comparison-differences-2025-01-01.csv"
    assert result.mimetype == "text/csv; charset=utf-8"


@pytest.mark.unit
def test_export_differences_csv_filters_categories(service, comparison) -> None:
    rows = _rows(
        service.export_differences_csv(
            comparison,
            include_unchanged=True,
            categories=["objectPermission"],
        ).content,
    )

    assert len(rows) == 1 + 6
    assert {row[0] for row in rows[1:]} == {"Object Permission"}
    assert rows[1][2:] == ["read", "unchanged", "Yes", "Yes"]


@pytest.mark.unit
@pytest.mark.parametrize("categories", [None, [], ["all"], ["all", "apexClass"]])
def test_export_differences_csv_all_categories(service, comparison, categories) -> None:
    rows = _rows(service.export_differences_csv(comparison, categories=categories).content)

    assert len(rows) == 5


@pytest.mark.unit
def test_export_detailed_csv_lists_full_matrix(service, profiles) -> None:
    result = service.export_detailed_csv(profiles)
    rows = _rows(result.content)

    assert rows[0] == ["Category", "Object", "Field", "Permission", "Sales User", "'=HYPERLINK()"]
    assert rows[1] == ["Object Permission", "Account", "", "read", "Yes", "Yes"]
    assert ["Field Permission", "Account", "Industry", "edit", "Yes", "No"] in rows
    assert ["Apex Class", "", "", "AccountController", "Yes", "No"] in rows
    assert ["Tab Visibility", "", "", "Invoice__c", "DefaultOn", "Hidden"] in rows
    assert ["App Visibility", "", "", "Sales Console (Visible)", "No", "Yes"] in rows
    assert ["App Visibility", "", "", "Sales Console (Default)", "No", "No"] in rows
    assert result.filename == "profile-comparison-detailed-2025-01-01.csv"


@pytest.mark.unit
def test_export_summary_csv(service, comparison) -> None:
    rows = _rows(service.export_summary_csv(comparison).content)

    assert rows[0] == ["Profile Comparison Summary"]
    assert rows[1] == ["Generated", "2025-01-01T12:00:00.123Z"]
    assert rows[2] == ["Profiles Compared", "Sales User, =HYPERLINK()"]
    assert rows[4] == ["Category", "Differences"]
    counts = dict(rows[5:14])
    assert counts["Field Permissions"] == "1"
    assert counts["Apex Classes"] == "1"
    assert counts["Object Permissions"] == "0"
    assert rows[-1] == ["Total Differences", "4"]


@pytest.mark.unit
def test_export_csv_dispatches_by_format(service, comparison, profiles) -> None:
    assert service.export_csv(comparison, profiles).filename.startswith("profile-comparison-differences-")
    assert "-summary-" in service.export_csv(comparison, profiles, {"format": "summary"}).filename
    assert "-detailed-" in service.export_csv(comparison, profiles, {"format": "detailed"}).filename

    with_unchanged = service.export_csv(comparison, profiles, {"includeUnchanged": True})
    assert len(_rows(with_unchanged.content)) == 1 + len(comparison["differences"])


@pytest.mark.unit
def test_export_csv_rejects_unknown_format(service, comparison, profiles) -> None:
    with pytest.raises(ValidationError) as excinfo:
        service.export_csv(comparison, profiles, {"format": "xlsx"})

    assert excinfo.value.message_key == "EXPORT_FORMAT_INVALID"


@pytest.mark.unit
@pytest.mark.parametrize("missing", ["comparison", "profiles"])
def test_exports_require_comparison_data(service, comparison, profiles, missing: str) -> None:
    data = {"comparison": comparison, "profiles": profiles, missing: None}

    with pytest.raises(ValidationError) as excinfo:
        service.export_csv(data["comparison"], data["profiles"])
    assert excinfo.value.message_key == "COMPARISON_DATA_REQUIRED"

    with pytest.raises(ValidationError):
        service.export_json(data["comparison"], data["profiles"])


@pytest.mark.unit
def test_export_json(service, comparison, profiles) -> None:
    result = service.export_json(comparison, profiles)
    document = json.loads(result.content)

    assert result.filename == "profile-comparison-2025-01-01.json"
    assert result.mimetype == "application/json; charset=utf-8"
    assert document["exportedAt"] == "2025-01-01T12:00:00.123Z"
    assert document["comparison"] == comparison
    assert document["profiles"][0]["displayName"] == "Sales User"
