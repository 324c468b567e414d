"""文件导出服务."""

from profile_compare.services.files.comparison_export_service import ComparisonExportService
from profile_compare.services.files.csv_export_result import CsvExportResult, JsonExportResult

__all__ = ["ComparisonExportService", "CsvExportResult", "JsonExportResult"]
