from datetime import datetime

from sqlalchemy import JSON, DateTime, MetaData
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from chatstore.utils.time_utils import Datetime

# 统一的 Metadata 命名约定
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 声明式基类（仅承载目录表）"""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class JSONCompat(TypeDecorator):
    """
    PostgreSQL 使用 JSONB，其他方言自动回退 JSON（SQLite 测试用）。
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class UTCDateTime(TypeDecorator):
    """
    写入前统一转换为 UTC，读取时补齐时区（SQLite 不保存时区信息）。
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return Datetime.ensure_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Datetime.ensure_utc(value)


class TimestampMixin:
    """
    时间戳 Mixin
    使用 chatstore.utils.time_utils.Datetime 确保时区一致性
    """
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=Datetime.now,
        nullable=False,
        comment="创建时间"
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=Datetime.now,
        onupdate=Datetime.now,
        nullable=False,
        comment="更新时间"
    )
