"""Profile Compare JSON API (Flask-RESTX) 入口.

`/api/v1/**` 为唯一对外 API, 同时提供 Swagger UI 与 OpenAPI JSON 导出能力.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flask import Flask

    from profile_compare.settings import Settings


def register_api_blueprints(app: Flask, settings: Settings) -> None:
    """按 Settings 注册 API blueprints."""
    from profile_compare.api.v1 import create_api_v1_blueprint  # noqa: PLC0415

    api_v1_bp = create_api_v1_blueprint(settings)
    app.register_blueprint(api_v1_bp, url_prefix="/api/v1")
