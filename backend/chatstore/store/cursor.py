from __future__ import annotations

import base64
import json
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import Select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from .indexes import IndexDirection, IndexKey


class CursorToken(str):
    """
    不透明的分页令牌（token_after 的返回值）。

    首个排序键为字符串字段时，普通 str 游标按单值处理，令牌必须以 CursorToken 传入。
    """


def encode_cursor(values: Sequence[Any]) -> CursorToken:
    """将排序键值数组编码为 Base64 字符串"""
    if not values:
        return CursorToken("")
    raw = json.dumps(to_jsonable_python(list(values)), separators=(",", ":"))
    return CursorToken(base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii"))


def decode_cursor(token: str) -> list[Any]:
    """将 Base64 字符串解码为排序键值数组"""
    if not token:
        return []
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        values = json.loads(raw)
    except (ValueError, UnicodeError) as exc:
        raise ValueError(f"malformed cursor token: {token!r}") from exc
    if not isinstance(values, list):
        raise ValueError(f"malformed cursor token: {token!r}")
    return values


def keyset_predicate(
    columns: Sequence[ColumnElement[Any]],
    keys: Sequence[IndexKey],
    cursor: Sequence[Any],
) -> ColumnElement[bool]:
    """
    严格位于 cursor 之后的行：
    (k1 op c1) OR (k1 = c1 AND k2 op c2) OR ...
    降序用 <，升序用 >；cursor 可以短于键列表。
    """
    clauses = []
    for i, value in enumerate(cursor):
        column = columns[i]
        _, direction = keys[i]
        step = column < value if direction is IndexDirection.DESC else column > value
        prefix = [columns[j] == cursor[j] for j in range(i)]
        clauses.append(and_(*prefix, step) if prefix else step)
    return or_(*clauses)


class RecordCursor:
    """
    惰性、有限、可重启的记录序列。

    构造时不执行查询；每次迭代（或 to_list）都会重新执行语句。
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        statement: Select,
        keys: Sequence[IndexKey],
        decode: Callable[[Mapping[str, Any]], dict[str, Any]],
    ):
        self._session_factory = session_factory
        self._statement = statement
        self.keys = tuple(keys)
        self._decode = decode

    @property
    def statement(self) -> Select:
        return self._statement

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        async with self._session_factory() as session:
            result = await session.execute(self._statement)
            for row in result.mappings():
                yield self._decode(row)

    async def to_list(self) -> list[dict[str, Any]]:
        return [record async for record in self]

    def cursor_after(self, record: Mapping[str, Any]) -> tuple[Any, ...]:
        """该记录作为下一页起点时的 cursor（含 id 决胜键）"""
        return tuple(record.get(field) for field, _ in self.keys)

    def token_after(self, record: Mapping[str, Any]) -> CursorToken:
        return encode_cursor(self.cursor_after(record))
