"""请求 payload schema."""

from profile_compare.schemas.comparisons import (
    CsvExportOptions,
    CsvExportPayload,
    JsonExportPayload,
    PermissionSetComparisonPayload,
    ProfileComparisonPayload,
)
from profile_compare.schemas.validation import SchemaMessageKeyError, validate_or_raise

__all__ = [
    "CsvExportOptions",
    "CsvExportPayload",
    "JsonExportPayload",
    "PermissionSetComparisonPayload",
    "ProfileComparisonPayload",
    "SchemaMessageKeyError",
    "validate_or_raise",
]
