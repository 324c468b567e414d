"""API 契约测试专用 fixtures.

提供已注册内存数据源的 test_client, 以及未注册数据源工厂的 client(用于 401 契约).
"""

import pytest

from profile_compare import create_app
from profile_compare.settings import Settings
from tests.fixtures.permission_records import FakePermissionDataSource


@pytest.fixture(scope="function")
def data_source(org_records):
    return FakePermissionDataSource(org_records)


@pytest.fixture(scope="function")
def app(data_source):
    """创建测试应用实例."""
    settings = Settings.load()
    app = create_app(settings=settings, data_source_factory=lambda: data_source)
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="function")
def client(app):
    """创建测试客户端."""
    return app.test_client()


@pytest.fixture(scope="function")
def anonymous_client():
    """未注册数据源工厂的客户端."""
    app = create_app(settings=Settings.load())
    app.config["TESTING"] = True
    return app.test_client()
