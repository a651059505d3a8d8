from datetime import UTC, datetime, timedelta


class Datetime:
    """
    统一的时间处理工具类
    核心原则：
    1. 存储与比较统一使用 UTC 时区
    2. 所有 datetime 对象必须带有时区信息 (Timezone-aware)
    """

    @staticmethod
    def now() -> datetime:
        """
        获取当前 UTC 时间（带时区信息）
        替代 datetime.now() 或 datetime.utcnow()
        """
        return datetime.now(UTC)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """naive 视为 UTC，其余统一转换到 UTC"""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """转换为 ISO 8601 格式字符串 (e.g., 2023-01-01T12:00:00+00:00)"""
        return Datetime.ensure_utc(dt).isoformat()

    @staticmethod
    def from_iso_string(iso_string: str) -> datetime:
        """从 ISO 8601 字符串解析"""
        return Datetime.ensure_utc(datetime.fromisoformat(iso_string))

    @staticmethod
    def seconds_ago(seconds: float, now: datetime | None = None) -> datetime:
        """相对 now 向前偏移的时间点，用于 TTL 截止时间"""
        base = Datetime.ensure_utc(now) if now else Datetime.now()
        return base - timedelta(seconds=seconds)
