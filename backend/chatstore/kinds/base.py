from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chatstore.store.enforcement import EnforcementLevel
from chatstore.store.schema import EntitySchema


@dataclass(frozen=True)
class IndexDeclaration:
    keys: tuple[tuple[str, int], ...]
    name: str | None = None
    unique: bool = False
    background: bool = False
    expire_after_seconds: int | None = None

    def options(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "unique": self.unique,
            "background": self.background,
            "expire_after_seconds": self.expire_after_seconds,
        }


@dataclass(frozen=True)
class KindDefinition:
    """
    内置实体：schema + 执行级别 + 索引，legacy_indexes 为需要下线的旧索引名
    """

    kind: str
    schema: EntitySchema
    enforcement: EnforcementLevel
    indexes: tuple[IndexDeclaration, ...] = ()
    legacy_indexes: tuple[str, ...] = field(default_factory=tuple)
