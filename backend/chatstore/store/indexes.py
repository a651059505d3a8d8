from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Index, Table

from .errors import IndexDefinitionError

MAX_INDEX_NAME_LENGTH = 63  # PostgreSQL 标识符上限


class IndexDirection(int, enum.Enum):
    ASC = 1
    DESC = -1

    @property
    def inverse(self) -> IndexDirection:
        return IndexDirection.DESC if self is IndexDirection.ASC else IndexDirection.ASC


IndexKey = tuple[str, IndexDirection]


def normalize_keys(keys: Iterable[tuple[str, Any]]) -> tuple[IndexKey, ...]:
    """
    将 [(field, 1|-1|IndexDirection), ...] 规范化为有序键元组
    """
    normalized: list[IndexKey] = []
    seen: set[str] = set()
    for item in keys:
        try:
            field, direction = item
        except (TypeError, ValueError) as exc:
            raise IndexDefinitionError(f"invalid index key: {item!r}") from exc
        if not isinstance(field, str) or not field:
            raise IndexDefinitionError(f"invalid index field: {field!r}")
        if field in seen:
            raise IndexDefinitionError(f"duplicate index field: {field}")
        try:
            direction_enum = IndexDirection(int(direction))
        except (TypeError, ValueError) as exc:
            raise IndexDefinitionError(f"invalid direction for {field}: {direction!r}") from exc
        seen.add(field)
        normalized.append((field, direction_enum))
    if not normalized:
        raise IndexDefinitionError("index key spec must not be empty")
    return tuple(normalized)


def default_index_name(kind: str, keys: Sequence[IndexKey]) -> str:
    parts = [f"{field}_{'asc' if direction is IndexDirection.ASC else 'desc'}" for field, direction in keys]
    return f"ix_{kind}_" + "_".join(parts)


@dataclass(frozen=True)
class IndexSpec:
    kind: str
    name: str
    keys: tuple[IndexKey, ...]
    unique: bool = False
    background: bool = False
    expire_after_seconds: int | None = None

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(field for field, _ in self.keys)

    @property
    def is_ttl(self) -> bool:
        return self.expire_after_seconds is not None

    def same_definition(self, other: IndexSpec) -> bool:
        # background 只影响构建方式，不属于索引定义
        return (
            self.keys == other.keys
            and self.unique == other.unique
            and self.expire_after_seconds == other.expire_after_seconds
        )

    def covers(self, filter_fields: Iterable[str], sort: Sequence[IndexKey]) -> bool:
        """
        索引前缀 = 等值过滤字段（任意顺序）+ 排序字段（方向全同或全反）
        """
        filter_set = set(filter_fields)
        n = len(filter_set)
        if len(self.keys) < n + len(sort):
            return False
        if {field for field, _ in self.keys[:n]} != filter_set:
            return False
        tail = self.keys[n:n + len(sort)]
        if [field for field, _ in tail] != [field for field, _ in sort]:
            return False
        same = all(d == sd for (_, d), (_, sd) in zip(tail, sort))
        inverted = all(d == sd.inverse for (_, d), (_, sd) in zip(tail, sort))
        return same or inverted

    def to_sqlalchemy(self, table: Table) -> Index:
        expressions = [
            table.c[field] if direction is IndexDirection.ASC else table.c[field].desc()
            for field, direction in self.keys
        ]
        return Index(
            self.name,
            *expressions,
            unique=self.unique,
            postgresql_concurrently=self.background,
        )

    def keys_document(self) -> list[list[Any]]:
        return [[field, int(direction)] for field, direction in self.keys]


def build_index_spec(
    kind: str,
    keys: Iterable[tuple[str, Any]],
    *,
    name: str | None = None,
    unique: bool = False,
    background: bool = False,
    expire_after_seconds: int | None = None,
) -> IndexSpec:
    normalized = normalize_keys(keys)
    index_name = name or default_index_name(kind, normalized)
    if len(index_name) > MAX_INDEX_NAME_LENGTH:
        raise IndexDefinitionError(f"index name too long, pass an explicit name: {index_name}")
    if expire_after_seconds is not None:
        if isinstance(expire_after_seconds, bool) or int(expire_after_seconds) <= 0:
            raise IndexDefinitionError("expire_after_seconds must be a positive integer")
        if len(normalized) != 1:
            raise IndexDefinitionError("TTL is only supported on single-field indexes")
        expire_after_seconds = int(expire_after_seconds)
    return IndexSpec(
        kind=kind,
        name=index_name,
        keys=normalized,
        unique=bool(unique),
        background=bool(background),
        expire_after_seconds=expire_after_seconds,
    )
