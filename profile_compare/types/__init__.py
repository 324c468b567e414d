"""类型定义集中导出."""

from profile_compare.types.comparison import (
    ComparedEntity,
    ComparisonOutcome,
    ComparisonPayload,
    ComparisonResult,
    ComparisonSummary,
    DiffItem,
    DiffItemPayload,
    DiffValue,
)
from profile_compare.types.profiles import CanonicalProfile, FieldAccess, ObjectAccess, ObjectPermissions
from profile_compare.types.records import (
    AppVisibility,
    FieldPermissionRecord,
    NameLookup,
    ObjectPermissionRecord,
    PermissionSetInfoRecord,
    PermissionSetRecord,
    ProfileRecord,
    ProfileVisibilityMetadata,
    SetupEntityAccessRecord,
)
from profile_compare.types.structures import (
    ContextDict,
    JsonDict,
    JsonValue,
    LoggerExtra,
    RouteSafetyOptions,
    StructlogEventDict,
)

__all__ = [
    "AppVisibility",
    "CanonicalProfile",
    "ComparedEntity",
    "ComparisonOutcome",
    "ComparisonPayload",
    "ComparisonResult",
    "ComparisonSummary",
    "ContextDict",
    "DiffItem",
    "DiffItemPayload",
    "DiffValue",
    "FieldAccess",
    "FieldPermissionRecord",
    "JsonDict",
    "JsonValue",
    "LoggerExtra",
    "NameLookup",
    "ObjectAccess",
    "ObjectPermissionRecord",
    "ObjectPermissions",
    "PermissionSetInfoRecord",
    "PermissionSetRecord",
    "ProfileRecord",
    "ProfileVisibilityMetadata",
    "RouteSafetyOptions",
    "SetupEntityAccessRecord",
    "StructlogEventDict",
]
