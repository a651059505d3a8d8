"""
Cornerstone 消息存储：schema 约束、索引声明与过期策略
"""

from chatstore.store import (
    EnforcementLevel,
    EntitySchema,
    FieldSpec,
    FieldType,
    IndexDirection,
    InsertResult,
    MessageStore,
    StoreError,
)

__all__ = [
    "EnforcementLevel",
    "EntitySchema",
    "FieldSpec",
    "FieldType",
    "IndexDirection",
    "InsertResult",
    "MessageStore",
    "StoreError",
]
