from __future__ import annotations

import re
from pathlib import Path

import pytest

ENV_READ_PATTERN = re.compile(r"\bos\.(?:environ\.get|environ\[|getenv)\(?|\bload_dotenv\(")
SETTINGS_MODULE = Path("profile_compare/settings.py")


def _scan_file(path: Path, *, display_path: Path) -> list[str]:
    content = path.read_text(encoding="utf-8", errors="ignore")
    return [
        f"{display_path}:{lineno}: {line.strip()}"
        for lineno, line in enumerate(content.splitlines(), start=1)
        if ENV_READ_PATTERN.search(line)
    ]


@pytest.mark.unit
def test_no_env_reads_outside_settings_module() -> None:
    """配置读取强约束: 环境变量与 .env 只允许在 settings 中读取."""
    repo_root = Path(__file__).resolve().parents[2]

    matches: list[str] = []
    for path in (repo_root / "profile_compare").rglob("*.py"):
        rel = path.relative_to(repo_root)
        if rel == SETTINGS_MODULE:
            continue
        matches.extend(_scan_file(path, display_path=rel))

    assert not matches, "发现 settings 之外的环境变量读取:\n" + "\n".join(matches[:50])
