# tests/unit/conftest.py
"""单元测试专用 fixtures."""

import pytest

_ISOLATED_ENV_KEYS = (
    "FLASK_DEBUG",
    "APP_NAME",
    "LOG_LEVEL",
    "NORMALIZER_MAX_WORKERS",
    "API_V1_DOCS_ENABLED",
    "EXPORT_INCLUDE_UNCHANGED_DEFAULT",
)


@pytest.fixture(autouse=True)
def _unit_test_env(monkeypatch):
    """为 unit tests 强制注入隔离环境变量.

    避免开发者本机环境变量或 `.env` 影响测试稳定性.
    """
    monkeypatch.setenv("FLASK_ENV", "testing")
    for key in _ISOLATED_ENV_KEYS:
        monkeypatch.setenv(key, "")
