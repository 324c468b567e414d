"""Profile Compare - CSV 导出安全工具.

对比导出中的对象名、权限名与展示名都来自 CRM 元数据, 可能被恶意构造.
单元格以 `= + - @` 或制表符/回车开头时, 电子表格软件可能将其解析为公式.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final

SPREADSHEET_FORMULA_PREFIXES: Final[tuple[str, ...]] = ("=", "+", "-", "@", "\t", "\r")


def sanitize_csv_cell(value: object) -> object:
    """对单元格做最小化清洗.

    Args:
        value: 单元格原始值.

    Returns:
        None 转为空串; 可能触发公式解析的字符串前追加 `'`; 其余原样返回.

    """
    if value is None:
        return ""
    if not isinstance(value, str) or not value:
        return value
    if value[0] in SPREADSHEET_FORMULA_PREFIXES or value.lstrip()[:1] in SPREADSHEET_FORMULA_PREFIXES:
        return f"'{value}"
    return value


def sanitize_csv_row(values: Iterable[object]) -> list[object]:
    return [sanitize_csv_cell(value) for value in values]
