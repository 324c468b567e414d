"""统一时间处理工具模块.

对比结果与导出文件名统一使用 UTC 时间.
"""

from datetime import UTC, date, datetime


class TimeFormats:
    """时间格式常量."""

    DATE_FORMAT = "%Y-%m-%d"
    ISO_SECONDS_FORMAT = "%Y-%m-%dT%H:%M:%S"


class TimeUtils:
    """统一时间处理工具类."""

    @staticmethod
    def now() -> datetime:
        """获取当前 UTC 时间.

        Returns:
            带 UTC 时区信息的当前时间.

        """
        return datetime.now(UTC)

    @staticmethod
    def to_utc(dt: datetime) -> datetime:
        """将时间转换为 UTC 时区,无时区信息的时间视为 UTC."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)

    @staticmethod
    def to_iso_timestamp(dt: datetime) -> str:
        """输出毫秒精度、以 ``Z`` 结尾的 ISO-8601 UTC 字符串.

        Args:
            dt: 待格式化的时间.

        Returns:
            形如 ``2024-05-01T08:30:00.123Z`` 的字符串.

        """
        utc_dt = TimeUtils.to_utc(dt)
        milliseconds = utc_dt.microsecond // 1000
        return f"{utc_dt.strftime(TimeFormats.ISO_SECONDS_FORMAT)}.{milliseconds:03d}Z"

    @staticmethod
    def format_date(dt: date | datetime) -> str:
        """格式化为 ``YYYY-MM-DD``,datetime 先转换为 UTC."""
        if isinstance(dt, datetime):
            dt = TimeUtils.to_utc(dt)
        return dt.strftime(TimeFormats.DATE_FORMAT)


time_utils = TimeUtils()
