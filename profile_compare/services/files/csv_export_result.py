"""导出结果类型.

files 域各导出方法统一返回 (文件名, 内容, mimetype), 由路由层组装下载响应.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CsvExportResult:
    """CSV 导出结果."""

    filename: str
    content: str
    mimetype: str = "text/csv; charset=utf-8"


@dataclass(frozen=True, slots=True)
class JsonExportResult:
    """JSON 导出结果, content 为已序列化的 JSON 文本."""

    filename: str
    content: str
    mimetype: str = "application/json; charset=utf-8"
