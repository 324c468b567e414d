"""全局 pytest fixtures."""

from __future__ import annotations

import datetime

import pytest

from tests.fixtures.permission_records import FakePermissionDataSource, OrgRecords, build_org_records

FIXED_NOW = datetime.datetime(2025, 1, 1, 12, 0, 0, 123456, tzinfo=datetime.UTC)


@pytest.fixture
def org_records() -> OrgRecords:
    """每个测试一份独立的组织记录."""
    return build_org_records()


@pytest.fixture
def fake_source(org_records: OrgRecords) -> FakePermissionDataSource:
    return FakePermissionDataSource(org_records)


@pytest.fixture
def fixed_now() -> datetime.datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_clock(fixed_now: datetime.datetime):
    return lambda: fixed_now
