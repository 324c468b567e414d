"""Profile Compare - 统一配置读取与校验.

目标:
- 将环境变量读取、默认值、校验集中到单一入口,避免散落在各模块中重复解析.
- `create_app(settings=...)` 只消费 Settings,不再直接读取环境变量.

说明:
- Settings 使用 `pydantic-settings` 的 `BaseSettings` 从环境变量与本地 `.env`(可选)读取配置.
- 校验失败统一抛出 ValueError,消息汇总全部不合法项.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DOTENV_PATH = PROJECT_ROOT / ".env"

DEFAULT_ENVIRONMENT = "development"
APP_VERSION = "0.3.0"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_NORMALIZER_MAX_WORKERS = 5
NORMALIZER_MAX_WORKERS_MIN = 1
NORMALIZER_MAX_WORKERS_MAX = 16

DEFAULT_API_V1_DOCS_ENABLED = True
DEFAULT_EXPORT_INCLUDE_UNCHANGED = False

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """应用运行时设置集合."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
        enable_decoding=False,
    )

    environment: str = Field(default=DEFAULT_ENVIRONMENT, validation_alias="FLASK_ENV")
    debug: bool = Field(default=False, validation_alias="FLASK_DEBUG")

    app_name: str = Field(default="Profile Compare", validation_alias="APP_NAME")
    app_version: str = APP_VERSION

    log_level: str = Field(default=DEFAULT_LOG_LEVEL, validation_alias="LOG_LEVEL")

    # 规范化阶段单波并发查询的线程数
    normalizer_max_workers: int = Field(
        default=DEFAULT_NORMALIZER_MAX_WORKERS,
        validation_alias="NORMALIZER_MAX_WORKERS",
    )

    api_v1_docs_enabled: bool = Field(default=DEFAULT_API_V1_DOCS_ENABLED, validation_alias="API_V1_DOCS_ENABLED")
    export_include_unchanged_default: bool = Field(
        default=DEFAULT_EXPORT_INCLUDE_UNCHANGED,
        validation_alias="EXPORT_INCLUDE_UNCHANGED_DEFAULT",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        """当前是否为生产环境."""
        return self.environment.strip().lower() == "production"

    def to_flask_config(self) -> dict[str, object]:
        """转换为 Flask app.config 可写入的配置字典."""
        return {
            "ENV": self.environment,
            "DEBUG": self.debug,
            "APP_NAME": self.app_name,
            "APP_VERSION": self.app_version,
            "LOG_LEVEL": self.log_level,
            "NORMALIZER_MAX_WORKERS": self.normalizer_max_workers,
            "API_V1_DOCS_ENABLED": self.api_v1_docs_enabled,
            "EXPORT_INCLUDE_UNCHANGED_DEFAULT": self.export_include_unchanged_default,
        }

    @classmethod
    def load(cls) -> Settings:
        """从环境变量加载 Settings 并执行必要校验."""
        load_dotenv(dotenv_path=DOTENV_PATH if DOTENV_PATH.exists() else None, override=False)
        return cls()

    @model_validator(mode="after")
    def _apply_defaults_and_validate(self) -> Settings:
        environment_normalized = self.environment.strip().lower()
        self._resolve_debug(environment_normalized)
        self._apply_api_docs_default(environment_normalized)
        self._validate()
        return self

    def _resolve_debug(self, environment_normalized: str) -> None:
        if "debug" in self.model_fields_set:
            return
        object.__setattr__(self, "debug", environment_normalized != "production")

    def _apply_api_docs_default(self, environment_normalized: str) -> None:
        if environment_normalized != "production":
            return
        if "api_v1_docs_enabled" in self.model_fields_set:
            return
        object.__setattr__(self, "api_v1_docs_enabled", False)

    def _validate(self) -> None:
        """执行跨字段校验,统一抛出可读的 ValueError."""
        errors: list[str] = []
        checks: list[tuple[str, bool]] = [
            (
                f"NORMALIZER_MAX_WORKERS 必须为 {NORMALIZER_MAX_WORKERS_MIN}-{NORMALIZER_MAX_WORKERS_MAX} 的整数",
                self.normalizer_max_workers < NORMALIZER_MAX_WORKERS_MIN
                or self.normalizer_max_workers > NORMALIZER_MAX_WORKERS_MAX,
            ),
            (
                "LOG_LEVEL 仅支持 DEBUG/INFO/WARNING/ERROR/CRITICAL",
                self.log_level not in _VALID_LOG_LEVELS,
            ),
        ]
        for message, condition in checks:
            if condition:
                errors.append(message)

        if errors:
            joined = "; ".join(errors)
            raise ValueError(f"配置校验失败: {joined}")
