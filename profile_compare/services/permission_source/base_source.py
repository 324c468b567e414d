"""CRM 权限元数据数据源契约.

OAuth 会话与批量查询客户端由宿主应用提供, 规范化流水线只依赖这里的抽象接口.
所有方法返回 CRM 原样字段的扁平记录, 失败时抛出传输层异常.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from profile_compare.types import (
        FieldPermissionRecord,
        NameLookup,
        ObjectPermissionRecord,
        PermissionSetInfoRecord,
        PermissionSetRecord,
        ProfileRecord,
        ProfileVisibilityMetadata,
        SetupEntityAccessRecord,
    )


class PermissionSourceError(RuntimeError):
    """数据源查询失败(HTTP 错误、分页中断、会话过期等)."""


# 数据源实现常见的传输层异常
SOURCE_QUERY_EXCEPTIONS: tuple[type[BaseException], ...] = (
    PermissionSourceError,
    ConnectionError,
    TimeoutError,
    OSError,
    RuntimeError,
    ValueError,
    LookupError,
)


class PermissionDataSource(ABC):
    """CRM 权限元数据数据源基类."""

    @abstractmethod
    def list_profiles(self) -> list[ProfileRecord]:
        """返回组织内全部 Profile 的 Id/Name."""

    @abstractmethod
    def get_profile_permission_set_ids(self, profile_ids: Sequence[str]) -> dict[str, str]:
        """查询 Profile 隐式拥有的 PermissionSet.

        Args:
            profile_ids: Profile ID 列表.

        Returns:
            dict[str, str]: profile_id -> permission_set_id(IsOwnedByProfile = true).

        """

    @abstractmethod
    def get_permission_sets(self, permission_set_ids: Sequence[str]) -> list[PermissionSetInfoRecord]:
        """返回 PermissionSet 的 Id/Name/Label/Description."""

    @abstractmethod
    def get_object_permissions(self, permission_set_ids: Sequence[str]) -> list[ObjectPermissionRecord]:
        """批量查询对象权限, ParentId 为 PermissionSet ID."""

    @abstractmethod
    def get_field_permissions(self, permission_set_ids: Sequence[str]) -> list[FieldPermissionRecord]:
        """批量查询字段权限, ParentId 为 PermissionSet ID."""

    @abstractmethod
    def get_permission_sets_with_system_permissions(
        self,
        permission_set_ids: Sequence[str],
    ) -> list[PermissionSetRecord]:
        """查询携带全部 ``Permissions*`` 系统权限字段的 PermissionSet 记录."""

    @abstractmethod
    def get_setup_entity_access(self, permission_set_ids: Sequence[str]) -> list[SetupEntityAccessRecord]:
        """批量查询 SetupEntityAccess 授权记录."""

    @abstractmethod
    def get_lightning_pages(self) -> NameLookup:
        """返回全局 Lightning 页面目录(FlexiPage id -> 名称), 不按 owner 过滤."""

    @abstractmethod
    def get_apex_class_names(self, apex_class_ids: Sequence[str]) -> NameLookup:
        """仅对给定 ID 解析 Apex 类名称."""

    @abstractmethod
    def get_apex_page_names(self, apex_page_ids: Sequence[str]) -> NameLookup:
        """仅对给定 ID 解析 Visualforce 页面名称."""

    @abstractmethod
    def get_record_types(self) -> NameLookup:
        """返回全部记录类型(id -> ``SobjectType.DeveloperName`` 等展示名)."""

    @abstractmethod
    def get_custom_tabs(self) -> NameLookup:
        """返回全部自定义选项卡."""

    @abstractmethod
    def get_custom_apps(self) -> NameLookup:
        """返回全部自定义应用(TabSet)."""

    def get_profile_visibility_metadata(
        self,
        profile_ids: Sequence[str],
    ) -> dict[str, ProfileVisibilityMetadata]:
        """读取 Profile 元数据中的选项卡/应用可见性.

        默认实现返回空字典, 表示数据源不提供该能力, 构建阶段回退到 SetupEntityAccess 推导.
        通过 Metadata API 读取的实现应覆盖此方法.

        Args:
            profile_ids: Profile ID 列表.

        Returns:
            dict[str, ProfileVisibilityMetadata]: profile_id -> 可见性元数据.

        """
        del profile_ids
        return {}
