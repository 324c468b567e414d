"""CRM 权限元数据数据源."""

from profile_compare.services.permission_source.base_source import (
    SOURCE_QUERY_EXCEPTIONS,
    PermissionDataSource,
    PermissionSourceError,
)

__all__ = ["SOURCE_QUERY_EXCEPTIONS", "PermissionDataSource", "PermissionSourceError"]
