"""
存储目录表

- store_entity_kind：每种实体的校验规则、执行级别与物理列布局
- store_index：已声明的索引及其选项（唯一 / 后台构建 / TTL）
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONCompat, TimestampMixin


class EntityKindCatalog(Base, TimestampMixin):
    """
    实体目录：kind 即数据表名
    """

    __tablename__ = "store_entity_kind"

    kind: Mapped[str] = mapped_column(String(64), primary_key=True, comment="实体类型")
    enforcement: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="校验执行级别 unvalidated/advisory/strict",
    )
    schema_document: Mapped[dict[str, Any]] = mapped_column(
        JSONCompat,
        nullable=False,
        default=dict,
        comment="字段约束定义",
    )
    columns: Mapped[dict[str, str]] = mapped_column(
        JSONCompat,
        nullable=False,
        default=dict,
        comment="物理列布局 {字段: 类型}，只增不减",
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1", comment="定义版本"
    )

    def __repr__(self) -> str:
        return f"<EntityKindCatalog(kind={self.kind}, enforcement={self.enforcement})>"


class IndexCatalog(Base, TimestampMixin):
    """
    索引目录：构建成功后才会写入
    """

    __tablename__ = "store_index"

    kind: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("store_entity_kind.kind", ondelete="CASCADE"),
        primary_key=True,
        comment="实体类型",
    )
    name: Mapped[str] = mapped_column(String(63), primary_key=True, comment="索引名")
    keys: Mapped[list[list[Any]]] = mapped_column(
        JSONCompat,
        nullable=False,
        comment="有序键 [[字段, 1|-1], ...]",
    )
    is_unique: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false", comment="唯一约束"
    )
    background: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false", comment="后台构建"
    )
    expire_after_seconds: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="TTL 秒数（仅单字段时间索引）"
    )

    def __repr__(self) -> str:
        return f"<IndexCatalog(kind={self.kind}, name={self.name})>"
