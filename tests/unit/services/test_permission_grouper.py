import pytest

from profile_compare.core.constants import SetupEntityType
from profile_compare.services.normalization.permission_grouper import (
    OwnerResolution,
    RawRecordSets,
    ResolvedNames,
    extract_system_permissions,
    group_permissions,
)


def _names() -> ResolvedNames:
    return ResolvedNames(
        apex_classes={"01pA": "AccountController"},
        apex_pages={"066A": "AccountPage"},
        record_types={"012A": "Account.Enterprise"},
        custom_tabs={"01rA": "Invoice__c"},
        custom_apps={"02uA": "Sales Console"},
        lightning_pages={"0M0A": "Account_Record_Page"},
    )


@pytest.mark.unit
def test_owner_resolution_from_profile_mapping_keeps_first_profile_for_shared_permission_set() -> None:
    resolution = OwnerResolution.from_profile_mapping({"00eA": "0PSA", "00eB": "0PSA", "00eC": ""})

    assert resolution.owner_for("0PSA") == "00eA"
    assert resolution.permission_set_for("00eB") is None
    assert resolution.permission_set_ids(["00eB", "00eA"]) == ["0PSA"]
    assert resolution.owner_for(None) is None


@pytest.mark.unit
def test_extract_system_permissions_accepts_only_real_booleans() -> None:
    record = {
        "Id": "0PSA",
        "Name": "X00eA",
        "PermissionsApiEnabled": True,
        "PermissionsViewSetup": False,
        "PermissionsRunReports": 1,
        "PermissionsExportReport": "true",
        "Permissions": True,
    }

    assert extract_system_permissions(record) == {"ApiEnabled": True, "ViewSetup": False}


@pytest.mark.unit
def test_group_permissions_routes_records_to_owner_slots() -> None:
    resolution = OwnerResolution.from_profile_mapping({"00eA": "0PSA", "00eB": "0PSB"})
    record_sets = RawRecordSets(
        object_permissions=(
            {"ParentId": "0PSA", "SobjectType": "Account", "PermissionsRead": True},
            {"ParentId": "0PSB", "SobjectType": "Contact", "PermissionsRead": True},
            {"ParentId": "0PSUnknown", "SobjectType": "Lead", "PermissionsRead": True},
        ),
        field_permissions=({"ParentId": "0PSB", "SobjectType": "Contact", "Field": "Contact.Email"},),
        system_permission_sets=(
            {"Id": "0PSA", "PermissionsApiEnabled": True},
            {"Id": "0PSB", "PermissionsApiEnabled": False},
        ),
        setup_entity_access=(
            {"ParentId": "0PSA", "SetupEntityType": "ApexClass", "SetupEntityId": "01pA"},
            {"ParentId": "0PSA", "SetupEntityType": "ApexClass", "SetupEntityId": "01pGone"},
            {"ParentId": "0PSA", "SetupEntityType": "ApexPage", "SetupEntityId": "066A"},
            {"ParentId": "0PSA", "SetupEntityType": "RecordType", "SetupEntityId": "012A"},
            {"ParentId": "0PSA", "SetupEntityType": "CustomTab", "SetupEntityId": "01rA"},
            {"ParentId": "0PSB", "SetupEntityType": "TabSet", "SetupEntityId": "02uA"},
            {"ParentId": "0PSA", "SetupEntityType": "FlexiPage", "SetupEntityId": "0M0A"},
            {"ParentId": "0PSB", "SetupEntityType": "FlexiPage", "SetupEntityId": "0M0Missing"},
            {"ParentId": "0PSB", "SetupEntityType": "ConnectedApplication", "SetupEntityId": "0H4A"},
        ),
    )

    bundles = group_permissions(["00eA", "00eB"], resolution, record_sets, _names())

    assert list(bundles) == ["00eA", "00eB"]
    sales, support = bundles["00eA"], bundles["00eB"]
    assert [record["SobjectType"] for record in sales.object_permissions] == ["Account"]
    assert [record["SobjectType"] for record in support.object_permissions] == ["Contact"]
    assert len(support.field_permissions) == 1
    assert sales.system_permissions == {"ApiEnabled": True}
    assert support.system_permissions == {"ApiEnabled": False}
    assert sales.apex_classes == ["AccountController"]
    assert sales.visualforce_pages == ["AccountPage"]
    assert sales.record_types == ["Account.Enterprise"]
    assert sales.tabs == ["Invoice__c"]
    assert support.apps == ["Sales Console"]
    assert sales.lightning_pages == ["Account_Record_Page"]
    assert support.lightning_pages == ["0M0Missing"]
    assert support.apex_classes == []


@pytest.mark.unit
def test_group_permissions_identity_resolution_for_permission_sets() -> None:
    resolution = OwnerResolution.identity(["0PSX"])
    record_sets = RawRecordSets(
        setup_entity_access=({"ParentId": "0PSX", "SetupEntityType": "ApexClass", "SetupEntityId": "01pA"},),
    )

    bundles = group_permissions(["0PSX"], resolution, record_sets, _names())

    assert bundles["0PSX"].apex_classes == ["AccountController"]


@pytest.mark.unit
def test_group_permissions_with_empty_record_sets_yields_empty_bundles() -> None:
    resolution = OwnerResolution.identity(["0PSX", "0PSY"])

    bundles = group_permissions(["0PSX", "0PSY"], resolution, RawRecordSets(), ResolvedNames())

    assert all(not bundle.object_permissions and not bundle.apex_classes for bundle in bundles.values())
    assert list(bundles) == ["0PSX", "0PSY"]


@pytest.mark.unit
def test_raw_record_sets_setup_entity_ids_filters_by_type() -> None:
    record_sets = RawRecordSets(
        setup_entity_access=(
            {"ParentId": "0PSA", "SetupEntityType": "ApexClass", "SetupEntityId": "01pA"},
            {"ParentId": "0PSA", "SetupEntityType": "ApexPage", "SetupEntityId": "066A"},
            {"ParentId": "0PSB", "SetupEntityType": "ApexClass", "SetupEntityId": "01pB"},
        ),
    )

    assert record_sets.setup_entity_ids(SetupEntityType.APEX_CLASS) == ["01pA", "01pB"]
