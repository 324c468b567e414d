"""权限记录分组: 按 owner(Profile 或 PermissionSet)归并扁平的原始记录.

原始记录的 ParentId 永远是 PermissionSet ID; Profile 模式下需要经 OwnerResolution
反查到 Profile ID. 每个 owner 在分组开始前按请求顺序分配一个固定槽位,
分组过程只写入记录所属 owner 的槽位.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from profile_compare.core.constants.permission_constants import SYSTEM_PERMISSION_PREFIX, SetupEntityType
from profile_compare.services.normalization.entity_resolver import EntityResolver
from profile_compare.utils.structlog_config import get_normalizer_logger

if TYPE_CHECKING:
    from profile_compare.types import (
        FieldPermissionRecord,
        NameLookup,
        ObjectPermissionRecord,
        PermissionSetRecord,
        SetupEntityAccessRecord,
    )

MODULE = "normalization"


@dataclass(frozen=True, slots=True)
class OwnerResolution:
    """PermissionSet ID 与 owner ID 的双向映射.

    每个 Profile 恰好拥有一个 PermissionSet, 因此对这部分 PermissionSet 反向映射同样是一一对应.
    """

    owner_by_permission_set: Mapping[str, str]
    permission_set_by_owner: Mapping[str, str]

    @classmethod
    def from_profile_mapping(cls, profile_to_permission_set: Mapping[str, str]) -> OwnerResolution:
        """由 profile_id -> permission_set_id 构建, 重复的 PermissionSet 只保留首个 Profile."""
        owner_by_permission_set: dict[str, str] = {}
        permission_set_by_owner: dict[str, str] = {}
        for profile_id, permission_set_id in profile_to_permission_set.items():
            if not profile_id or not permission_set_id or permission_set_id in owner_by_permission_set:
                continue
            owner_by_permission_set[permission_set_id] = profile_id
            permission_set_by_owner[profile_id] = permission_set_id
        return cls(owner_by_permission_set, permission_set_by_owner)

    @classmethod
    def identity(cls, permission_set_ids: Iterable[str]) -> OwnerResolution:
        """PermissionSet 模式: owner 即 PermissionSet 自身."""
        mapping = {permission_set_id: permission_set_id for permission_set_id in permission_set_ids if permission_set_id}
        return cls(mapping, dict(mapping))

    def owner_for(self, permission_set_id: str | None) -> str | None:
        if not permission_set_id:
            return None
        return self.owner_by_permission_set.get(permission_set_id)

    def permission_set_for(self, owner_id: str) -> str | None:
        return self.permission_set_by_owner.get(owner_id)

    def permission_set_ids(self, owner_ids: Iterable[str]) -> list[str]:
        """按 owner 顺序返回已映射的 PermissionSet ID."""
        resolved: list[str] = []
        for owner_id in owner_ids:
            permission_set_id = self.permission_set_by_owner.get(owner_id)
            if permission_set_id:
                resolved.append(permission_set_id)
        return resolved


@dataclass(frozen=True, slots=True)
class RawRecordSets:
    """第一波批量查询的结果, 失败的查询以空集合代替."""

    object_permissions: Sequence[ObjectPermissionRecord] = ()
    field_permissions: Sequence[FieldPermissionRecord] = ()
    system_permission_sets: Sequence[PermissionSetRecord] = ()
    setup_entity_access: Sequence[SetupEntityAccessRecord] = ()

    def setup_entity_ids(self, entity_type: SetupEntityType) -> list[str]:
        """返回指定类型在 SetupEntityAccess 中出现过的实体 ID."""
        return [
            str(record.get("SetupEntityId"))
            for record in self.setup_entity_access
            if SetupEntityType.parse(record.get("SetupEntityType")) is entity_type and record.get("SetupEntityId")
        ]


@dataclass(frozen=True, slots=True)
class ResolvedNames:
    """第二波名称解析结果(Lightning 页面目录来自第一波)."""

    apex_classes: NameLookup = field(default_factory=dict)
    apex_pages: NameLookup = field(default_factory=dict)
    record_types: NameLookup = field(default_factory=dict)
    custom_tabs: NameLookup = field(default_factory=dict)
    custom_apps: NameLookup = field(default_factory=dict)
    lightning_pages: NameLookup = field(default_factory=dict)


@dataclass(slots=True)
class PermissionBundle:
    """单个 owner 的分组结果, 仅在分组阶段写入."""

    object_permissions: list[ObjectPermissionRecord] = field(default_factory=list)
    field_permissions: list[FieldPermissionRecord] = field(default_factory=list)
    system_permissions: dict[str, bool] = field(default_factory=dict)
    apex_classes: list[str] = field(default_factory=list)
    visualforce_pages: list[str] = field(default_factory=list)
    lightning_pages: list[str] = field(default_factory=list)
    record_types: list[str] = field(default_factory=list)
    tabs: list[str] = field(default_factory=list)
    apps: list[str] = field(default_factory=list)


def extract_system_permissions(record: PermissionSetRecord) -> dict[str, bool]:
    """提取 ``Permissions*`` 布尔字段并去掉前缀.

    只接受真正的布尔值, 1/"true" 等真值不计入.
    """
    extracted: dict[str, bool] = {}
    for key, value in record.items():
        if not key.startswith(SYSTEM_PERMISSION_PREFIX) or not isinstance(value, bool):
            continue
        short_name = key[len(SYSTEM_PERMISSION_PREFIX) :]
        if short_name:
            extracted[short_name] = value
    return extracted


def group_permissions(
    owner_ids: Sequence[str],
    owner_resolution: OwnerResolution,
    record_sets: RawRecordSets,
    names: ResolvedNames,
) -> dict[str, PermissionBundle]:
    """按 owner 归并原始记录.

    Args:
        owner_ids: 请求的 owner ID(已去重), 决定槽位顺序.
        owner_resolution: PermissionSet -> owner 映射.
        record_sets: 第一波查询结果.
        names: 名称解析结果.

    Returns:
        dict[str, PermissionBundle]: owner_id -> bundle, 顺序与 owner_ids 一致.
            未映射到任何请求 owner 的记录被直接丢弃.

    """
    slots = [PermissionBundle() for _ in owner_ids]
    slot_index = {owner_id: index for index, owner_id in enumerate(owner_ids)}

    def _slot_for(permission_set_id: object) -> PermissionBundle | None:
        owner_id = owner_resolution.owner_for(permission_set_id if isinstance(permission_set_id, str) else None)
        if owner_id is None:
            return None
        index = slot_index.get(owner_id)
        return slots[index] if index is not None else None

    for object_record in record_sets.object_permissions:
        bundle = _slot_for(object_record.get("ParentId"))
        if bundle is not None:
            bundle.object_permissions.append(object_record)

    for field_record in record_sets.field_permissions:
        bundle = _slot_for(field_record.get("ParentId"))
        if bundle is not None:
            bundle.field_permissions.append(field_record)

    for permission_set_record in record_sets.system_permission_sets:
        bundle = _slot_for(permission_set_record.get("Id"))
        if bundle is not None:
            bundle.system_permissions.update(extract_system_permissions(permission_set_record))

    type_counts: dict[str, int] = {}
    match_counts = {entity_type.value: {"matched": 0, "unmatched": 0} for entity_type in SetupEntityType}
    for access_record in record_sets.setup_entity_access:
        raw_type = str(access_record.get("SetupEntityType") or "")
        type_counts[raw_type] = type_counts.get(raw_type, 0) + 1

        bundle = _slot_for(access_record.get("ParentId"))
        entity_type = SetupEntityType.parse(raw_type)
        if bundle is None or entity_type is None:
            continue
        matched = _route_setup_entity(bundle, entity_type, str(access_record.get("SetupEntityId") or ""), names)
        match_counts[entity_type.value]["matched" if matched else "unmatched"] += 1

    get_normalizer_logger().info(
        "normalizer_permissions_grouped",
        module=MODULE,
        phase="group",
        owners=len(owner_ids),
        object_permissions=len(record_sets.object_permissions),
        field_permissions=len(record_sets.field_permissions),
        system_permission_sets=len(record_sets.system_permission_sets),
        setup_entity_types=dict(sorted(type_counts.items())),
        setup_entity_matches=match_counts,
    )
    return {owner_id: slots[index] for owner_id, index in slot_index.items()}


def _route_setup_entity(
    bundle: PermissionBundle,
    entity_type: SetupEntityType,
    entity_id: str,
    names: ResolvedNames,
) -> bool:
    """将一条 SetupEntityAccess 写入 bundle 对应集合, 返回名称是否解析成功."""
    if entity_type is SetupEntityType.FLEXI_PAGE:
        page_name = names.lightning_pages.get(entity_id)
        bundle.lightning_pages.append(EntityResolver.lightning_page_name(names.lightning_pages, entity_id))
        return page_name is not None

    if entity_type is SetupEntityType.APEX_CLASS:
        lookup, target = names.apex_classes, bundle.apex_classes
    elif entity_type is SetupEntityType.APEX_PAGE:
        lookup, target = names.apex_pages, bundle.visualforce_pages
    elif entity_type is SetupEntityType.RECORD_TYPE:
        lookup, target = names.record_types, bundle.record_types
    elif entity_type is SetupEntityType.TAB_SET:
        lookup, target = names.custom_apps, bundle.apps
    else:
        lookup, target = names.custom_tabs, bundle.tabs

    resolved_name = lookup.get(entity_id)
    if not resolved_name:
        return False
    target.append(resolved_name)
    return True


__all__ = [
    "OwnerResolution",
    "PermissionBundle",
    "RawRecordSets",
    "ResolvedNames",
    "extract_system_permissions",
    "group_permissions",
]
