from __future__ import annotations

import ast
from pathlib import Path

import pytest

HTTP_METHOD_NAMES = {"get", "post", "put", "delete", "patch"}


def _calls(fn: ast.FunctionDef, *, attr: str | None = None, name: str | None = None) -> bool:
    for node in ast.walk(fn):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if attr and isinstance(func, ast.Attribute) and func.attr == attr:
            if isinstance(func.value, ast.Name) and func.value.id == "request":
                return True
        if name and isinstance(func, ast.Name) and func.id == name:
            return True
    return False


def _has_ns_expect(fn: ast.FunctionDef) -> bool:
    for decorator in fn.decorator_list:
        if not isinstance(decorator, ast.Call):
            continue
        if not isinstance(decorator.func, ast.Attribute) or decorator.func.attr != "expect":
            continue
        if isinstance(decorator.func.value, ast.Name) and decorator.func.value.id == "ns":
            return True
    return False


def _json_body_endpoints() -> list[tuple[str, ast.ClassDef, ast.FunctionDef]]:
    repo_root = Path(__file__).resolve().parents[2]
    namespaces_root = repo_root / "profile_compare" / "api" / "v1" / "namespaces"

    endpoints: list[tuple[str, ast.ClassDef, ast.FunctionDef]] = []
    for path in sorted(namespaces_root.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"))
        rel = str(path.relative_to(repo_root))
        for node in tree.body:
            if not isinstance(node, ast.ClassDef):
                continue
            for item in node.body:
                if not isinstance(item, ast.FunctionDef) or item.name not in HTTP_METHOD_NAMES:
                    continue
                if _calls(item, attr="get_json"):
                    endpoints.append((rel, node, item))
    return endpoints


@pytest.mark.unit
def test_api_v1_json_body_endpoints_declare_ns_expect_model() -> None:
    """OpenAPI: 读取 request.get_json 的端点必须声明 @ns.expect(model)."""
    endpoints = _json_body_endpoints()
    missing = [
        f"{rel}:{fn.lineno}: {cls.name}.{fn.name} missing @ns.expect"
        for rel, cls, fn in endpoints
        if not _has_ns_expect(fn)
    ]

    assert endpoints, "未发现任何 JSON body 端点, 门禁扫描路径可能失效"
    assert not missing, "发现缺少 @ns.expect 的 JSON body 端点:\n" + "\n".join(missing)


@pytest.mark.unit
def test_api_v1_json_body_endpoints_validate_with_schema() -> None:
    """请求体必须经 validate_or_raise 校验后再交给 service."""
    missing = [
        f"{rel}:{fn.lineno}: {cls.name}.{fn.name} missing validate_or_raise"
        for rel, cls, fn in _json_body_endpoints()
        if not _calls(fn, name="validate_or_raise")
    ]

    assert not missing, "发现未做 schema 校验的 JSON body 端点:\n" + "\n".join(missing)
