"""
Schema 约束的消息存储

每种实体（kind）对应一张表：
- 已声明字段映射为可空的类型列，必填与枚举约束由应用层规则按执行级别校验
- 未声明字段或 advisory 模式下类型不符的值写入 extra 溢出列，不丢数据
- 索引与 TTL 由 store 声明，引擎负责构建；SQL 引擎没有原生 TTL，
  读路径过滤已过期记录，purge_expired 负责物理删除
- 目录表（store_entity_kind / store_index）持久化定义，init() 时重新加载
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from alembic.migration import MigrationContext
from alembic.operations import Operations
from pydantic import BaseModel
from pydantic_core import to_jsonable_python
from sqlalchemy import (
    BigInteger,
    Column,
    Index,
    Integer,
    MetaData,
    Table,
    delete,
    func,
    insert,
    inspect,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from chatstore.core.config import settings
from chatstore.core.logging import logger
from chatstore.models.base import NAMING_CONVENTION, Base, JSONCompat
from chatstore.models.catalog import EntityKindCatalog, IndexCatalog
from chatstore.utils.time_utils import Datetime

from .cursor import CursorToken, RecordCursor, decode_cursor, keyset_predicate
from .enforcement import EnforcementLevel, EnforcementStateMachine
from .errors import (
    DuplicateKeyError,
    IndexBuildError,
    IndexConflictError,
    IndexDefinitionError,
    IndexNotFoundError,
    SchemaDefinitionError,
    SchemaViolationError,
    UnindexedQueryError,
    UnknownEntityKindError,
    UnknownFieldError,
)
from .indexes import IndexDirection, IndexKey, IndexSpec, build_index_spec, normalize_keys
from .schema import FIELD_NAME_PATTERN, EntitySchema, FieldType, Violation

RECORD_ID = "id"
OVERFLOW_COLUMN = "extra"
CATALOG_PREFIX = "store_"


@dataclass
class EntityKindState:
    kind: str
    schema: EntitySchema
    enforcement: EnforcementLevel
    columns: dict[str, FieldType]
    table: Table
    version: int = 1
    indexes: dict[str, IndexSpec] = field(default_factory=dict)
    index_objects: dict[str, Index] = field(default_factory=dict)

    @property
    def ttl_indexes(self) -> list[IndexSpec]:
        return [spec for spec in self.indexes.values() if spec.is_ttl]


@dataclass(frozen=True)
class InsertResult:
    inserted_id: int
    warnings: tuple[Violation, ...] = ()


def _same_storage(a: FieldType, b: FieldType) -> bool:
    return type(a.storage_type()) is type(b.storage_type())


def _add_columns(sync_conn, table_name: str, columns: Mapping[str, FieldType]) -> None:
    existing = {col["name"] for col in inspect(sync_conn).get_columns(table_name)}
    operations = Operations(MigrationContext.configure(sync_conn))
    for name, field_type in columns.items():
        if name in existing:
            continue
        operations.add_column(table_name, Column(name, field_type.storage_type(), nullable=True))


class MessageStore:
    def __init__(
        self,
        engine: AsyncEngine,
        *,
        clock: Callable[[], datetime] = Datetime.now,
        default_enforcement: EnforcementLevel | str | None = None,
        require_indexed_queries: bool | None = None,
    ):
        self._engine = engine
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        self._clock = clock
        self._metadata = MetaData(naming_convention=NAMING_CONVENTION)
        self._kinds: dict[str, EntityKindState] = {}
        self.default_enforcement = EnforcementLevel(
            default_enforcement or settings.STORE_DEFAULT_ENFORCEMENT
        )
        self.require_indexed_queries = (
            settings.STORE_REQUIRE_INDEXED_QUERIES
            if require_indexed_queries is None
            else require_indexed_queries
        )

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------
    async def init(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await self.refresh()

    async def refresh(self) -> None:
        """从目录表重建内存中的实体定义"""
        async with self._session_factory() as session:
            kind_rows = (await session.execute(select(EntityKindCatalog))).scalars().all()
            index_rows = (await session.execute(select(IndexCatalog))).scalars().all()

        self._metadata = MetaData(naming_convention=NAMING_CONVENTION)
        kinds: dict[str, EntityKindState] = {}
        for row in kind_rows:
            columns = {name: FieldType(value) for name, value in (row.columns or {}).items()}
            kinds[row.kind] = EntityKindState(
                kind=row.kind,
                schema=EntitySchema.from_document(row.schema_document or {}),
                enforcement=EnforcementLevel(row.enforcement),
                columns=columns,
                table=self._build_table(row.kind, columns),
                version=row.version,
            )
        for row in index_rows:
            state = kinds.get(row.kind)
            if state is None:
                continue
            spec = IndexSpec(
                kind=row.kind,
                name=row.name,
                keys=normalize_keys(row.keys),
                unique=row.is_unique,
                background=row.background,
                expire_after_seconds=row.expire_after_seconds,
            )
            state.indexes[spec.name] = spec
            state.index_objects[spec.name] = spec.to_sqlalchemy(state.table)
        self._kinds = kinds
        logger.debug(f"store_catalog_loaded kinds={sorted(kinds)}")

    @property
    def kinds(self) -> dict[str, EntityKindState]:
        return dict(self._kinds)

    def state(self, kind: str) -> EntityKindState:
        try:
            return self._kinds[kind]
        except KeyError:
            raise UnknownEntityKindError(kind) from None

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def now(self) -> datetime:
        return Datetime.ensure_utc(self._clock())

    # ------------------------------------------------------------------
    # Schema 定义
    # ------------------------------------------------------------------
    async def define_schema(
        self,
        kind: str,
        schema: EntitySchema,
        *,
        enforcement: EnforcementLevel | str | None = None,
    ) -> EntityKindState:
        if not FIELD_NAME_PATTERN.match(kind) or kind.startswith(CATALOG_PREFIX):
            raise SchemaDefinitionError(f"invalid entity kind name: {kind!r}")
        requested = EnforcementLevel(enforcement) if enforcement is not None else None

        existing = self._kinds.get(kind)
        if existing is None:
            return await self._create_kind(kind, schema, requested or self.default_enforcement)
        return await self._redefine_kind(existing, schema, requested)

    async def _create_kind(
        self,
        kind: str,
        schema: EntitySchema,
        enforcement: EnforcementLevel,
    ) -> EntityKindState:
        columns = {name: spec.type for name, spec in schema.fields.items()}
        table = self._build_table(kind, columns)
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(lambda sync_conn: table.create(sync_conn, checkfirst=True))
                await conn.execute(
                    insert(EntityKindCatalog).values(
                        kind=kind,
                        enforcement=enforcement.value,
                        schema_document=schema.to_document(),
                        columns={name: ft.value for name, ft in columns.items()},
                        version=1,
                    )
                )
        except SQLAlchemyError as exc:
            self._metadata.remove(table)
            raise SchemaDefinitionError(f"failed to define {kind}: {exc}") from exc

        state = EntityKindState(
            kind=kind,
            schema=schema,
            enforcement=enforcement,
            columns=columns,
            table=table,
        )
        self._kinds[kind] = state
        logger.info(f"entity_kind_defined kind={kind} enforcement={enforcement.value} fields={list(columns)}")
        return state

    async def _redefine_kind(
        self,
        state: EntityKindState,
        schema: EntitySchema,
        requested: EnforcementLevel | None,
    ) -> EntityKindState:
        level = EnforcementStateMachine.resolve(state.kind, state.enforcement, requested)
        if level == state.enforcement and schema.to_document() == state.schema.to_document():
            return state

        added: dict[str, FieldType] = {}
        for name, spec in schema.fields.items():
            current = state.columns.get(name)
            if current is None:
                added[name] = spec.type
            elif not _same_storage(current, spec.type):
                raise SchemaDefinitionError(
                    f"{state.kind}.{name}: storage type cannot change from {current.value} to {spec.type.value}"
                )
        # 旧列保留，避免历史数据丢失
        merged = {**state.columns, **added}

        try:
            async with self._engine.begin() as conn:
                if added:
                    await conn.run_sync(_add_columns, state.kind, added)
                await conn.execute(
                    update(EntityKindCatalog)
                    .where(EntityKindCatalog.kind == state.kind)
                    .values(
                        enforcement=level.value,
                        schema_document=schema.to_document(),
                        columns={name: ft.value for name, ft in merged.items()},
                        version=state.version + 1,
                    )
                )
        except SQLAlchemyError as exc:
            raise SchemaDefinitionError(f"failed to redefine {state.kind}: {exc}") from exc

        for name, field_type in added.items():
            state.table.append_column(Column(name, field_type.storage_type(), nullable=True))
        if level != state.enforcement:
            logger.info(
                f"enforcement_transition kind={state.kind} from={state.enforcement.value} to={level.value}"
            )
        state.schema = schema
        state.columns = merged
        state.enforcement = level
        state.version += 1
        logger.info(f"entity_kind_redefined kind={state.kind} version={state.version} added={list(added)}")
        return state

    async def set_enforcement(
        self,
        kind: str,
        level: EnforcementLevel | str,
    ) -> EntityKindState:
        state = self.state(kind)
        target = EnforcementStateMachine.resolve(kind, state.enforcement, level)
        if target == state.enforcement:
            return state

        async with self._session_factory() as session:
            await session.execute(
                update(EntityKindCatalog)
                .where(EntityKindCatalog.kind == kind)
                .values(enforcement=target.value)
            )
            await session.commit()

        logger.info(f"enforcement_transition kind={kind} from={state.enforcement.value} to={target.value}")
        state.enforcement = target
        return state

    # ------------------------------------------------------------------
    # 索引
    # ------------------------------------------------------------------
    async def create_index(
        self,
        kind: str,
        keys: Iterable[tuple[str, Any]],
        *,
        name: str | None = None,
        unique: bool = False,
        background: bool = False,
        expire_after_seconds: int | None = None,
    ) -> IndexSpec:
        state = self.state(kind)
        spec = build_index_spec(
            kind,
            keys,
            name=name,
            unique=unique,
            background=background,
            expire_after_seconds=expire_after_seconds,
        )
        for field_name in spec.fields:
            if field_name not in state.columns:
                raise IndexDefinitionError(f"{kind}: cannot index unknown field {field_name!r}")
        if spec.is_ttl and state.columns[spec.fields[0]] is not FieldType.DATE:
            raise IndexDefinitionError(f"{kind}: TTL index requires a date field, got {spec.fields[0]!r}")

        existing = state.indexes.get(spec.name)
        if existing is not None:
            if existing.same_definition(spec):
                logger.debug(f"index_exists kind={kind} name={spec.name}")
                return existing
            raise IndexConflictError(f"{kind}: index {spec.name} already exists with a different spec")
        for other in state.indexes.values():
            if other.same_definition(spec):
                raise IndexConflictError(
                    f"{kind}: index with the same spec already exists as {other.name}"
                )

        index = spec.to_sqlalchemy(state.table)
        try:
            await self._run_ddl(
                lambda sync_conn: index.create(sync_conn, checkfirst=True),
                autocommit=spec.background,
            )
        except SQLAlchemyError as exc:
            state.table.indexes.discard(index)
            raise IndexBuildError(f"{kind}: failed to build index {spec.name}: {exc}") from exc

        try:
            async with self._session_factory() as session:
                session.add(
                    IndexCatalog(
                        kind=kind,
                        name=spec.name,
                        keys=spec.keys_document(),
                        is_unique=spec.unique,
                        background=spec.background,
                        expire_after_seconds=spec.expire_after_seconds,
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            # 目录写入失败时回滚物理索引，避免半完成状态
            await self._run_ddl(
                lambda sync_conn: index.drop(sync_conn, checkfirst=True),
                autocommit=spec.background,
            )
            state.table.indexes.discard(index)
            raise IndexBuildError(f"{kind}: failed to register index {spec.name}: {exc}") from exc

        state.indexes[spec.name] = spec
        state.index_objects[spec.name] = index
        logger.info(
            f"index_created kind={kind} name={spec.name} keys={spec.keys_document()} "
            f"unique={spec.unique} background={spec.background} ttl={spec.expire_after_seconds}"
        )
        return spec

    async def drop_index(self, kind: str, name: str) -> None:
        state = self.state(kind)
        if name not in state.indexes:
            raise IndexNotFoundError(f"{kind}: index not found: {name}")
        spec = state.indexes[name]
        index = state.index_objects[name]

        try:
            await self._run_ddl(
                lambda sync_conn: index.drop(sync_conn, checkfirst=True),
                autocommit=spec.background,
            )
            async with self._session_factory() as session:
                await session.execute(
                    delete(IndexCatalog).where(IndexCatalog.kind == kind, IndexCatalog.name == name)
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise IndexBuildError(f"{kind}: failed to drop index {name}: {exc}") from exc

        state.table.indexes.discard(index)
        del state.indexes[name]
        del state.index_objects[name]
        logger.info(f"index_dropped kind={kind} name={name}")

    def list_indexes(self, kind: str) -> list[IndexSpec]:
        return list(self.state(kind).indexes.values())

    # ------------------------------------------------------------------
    # 写入
    # ------------------------------------------------------------------
    async def append(self, kind: str, record: Mapping[str, Any] | BaseModel) -> InsertResult:
        state = self.state(kind)
        document = self._to_document(record)
        warnings = self._enforce(state, state.schema.validate(document))
        row = self._to_row(state, document)

        try:
            async with self._session_factory() as session:
                result = await session.execute(insert(state.table).values(**row))
                await session.commit()
        except IntegrityError as exc:
            raise DuplicateKeyError(kind, str(exc.orig)) from exc

        inserted_id = int(result.inserted_primary_key[0])
        return InsertResult(inserted_id=inserted_id, warnings=tuple(warnings))

    async def update_one(
        self,
        kind: str,
        record_id: int,
        values: Mapping[str, Any],
        *,
        filter_key: Mapping[str, Any] | None = None,
    ) -> bool:
        state = self.state(kind)
        row = self._prepare_update(state, values)
        where = [state.table.c[RECORD_ID] == record_id, *self._where(state, filter_key or {})]
        updated = await self._execute_update(state, where, row)
        return updated > 0

    async def update_many(
        self,
        kind: str,
        filter_key: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> int:
        state = self.state(kind)
        self._ensure_indexed(state, filter_key.keys(), ())
        row = self._prepare_update(state, values)
        return await self._execute_update(state, self._where(state, filter_key), row)

    async def _execute_update(
        self,
        state: EntityKindState,
        where: Sequence[ColumnElement[bool]],
        row: Mapping[str, Any],
    ) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(update(state.table).where(*where).values(**row))
                await session.commit()
        except IntegrityError as exc:
            raise DuplicateKeyError(state.kind, str(exc.orig)) from exc
        return int(result.rowcount or 0)

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------
    def page_by_key(
        self,
        kind: str,
        filter_key: Mapping[str, Any],
        sort: Sequence[tuple[str, Any]],
        cursor: Any = None,
        limit: int | None = None,
    ) -> RecordCursor:
        """
        按 filter_key 等值过滤、按 sort 排序，从 cursor 之后（不含）取至多 limit 条。

        cursor 可以是单值、元组或 RecordCursor.token_after() 生成的 CursorToken；
        首个排序键不是字符串字段时，普通 str 也按令牌解码。
        记录 id 作为最后一个决胜键自动追加。
        """
        state = self.state(kind)
        sort_keys = normalize_keys(sort) if sort else ()
        for field_name, _ in sort_keys:
            if field_name != RECORD_ID and field_name not in state.columns:
                raise UnknownFieldError(kind, field_name)
        self._ensure_indexed(state, filter_key.keys(), sort_keys)

        keys: tuple[IndexKey, ...] = sort_keys
        if RECORD_ID not in {f for f, _ in sort_keys}:
            tiebreak = sort_keys[-1][1] if sort_keys else IndexDirection.ASC
            keys = (*sort_keys, (RECORD_ID, tiebreak))
        columns = [state.table.c[f] for f, _ in keys]

        stmt = select(state.table).where(*self._where(state, filter_key))
        # 排序键为空的记录无法参与游标分页
        for field_name, _ in sort_keys:
            stmt = stmt.where(state.table.c[field_name].is_not(None))
        if cursor is not None:
            values = self._cursor_values(state, keys, cursor)
            if values:
                stmt = stmt.where(keyset_predicate(columns, keys, values))
        stmt = stmt.order_by(
            *[
                column.desc() if direction is IndexDirection.DESC else column.asc()
                for column, (_, direction) in zip(columns, keys)
            ]
        ).limit(self.resolve_limit(limit))

        return RecordCursor(self._session_factory, stmt, keys, self._decode)

    async def get(self, kind: str, record_id: int) -> dict[str, Any] | None:
        state = self.state(kind)
        stmt = select(state.table).where(
            state.table.c[RECORD_ID] == record_id, *self._ttl_clauses(state)
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).mappings().first()
        return self._decode(row) if row is not None else None

    async def find_one(self, kind: str, filter_key: Mapping[str, Any]) -> dict[str, Any] | None:
        state = self.state(kind)
        self._ensure_indexed(state, filter_key.keys(), ())
        stmt = (
            select(state.table)
            .where(*self._where(state, filter_key))
            .order_by(state.table.c[RECORD_ID].asc())
            .limit(1)
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).mappings().first()
        return self._decode(row) if row is not None else None

    async def count(self, kind: str, filter_key: Mapping[str, Any]) -> int:
        state = self.state(kind)
        self._ensure_indexed(state, filter_key.keys(), ())
        stmt = select(func.count()).select_from(state.table).where(*self._where(state, filter_key))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
        return int(result.scalar() or 0)

    async def find_violations(
        self,
        kind: str,
        limit: int | None = None,
    ) -> list[tuple[int, list[Violation]]]:
        """
        找出不满足当前规则的已有记录（advisory -> strict 前的预检）
        """
        state = self.state(kind)
        stmt = (
            select(state.table)
            .where(*self._ttl_clauses(state))
            .order_by(state.table.c[RECORD_ID].asc())
        )
        found: list[tuple[int, list[Violation]]] = []
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            for row in result.mappings():
                record = self._decode(row)
                violations = state.schema.validate(record)
                if violations:
                    found.append((record[RECORD_ID], violations))
                    if limit is not None and len(found) >= limit:
                        break
        return found

    # ------------------------------------------------------------------
    # 过期清理
    # ------------------------------------------------------------------
    async def purge_expired(self, kind: str | None = None) -> dict[str, int]:
        targets = [self.state(kind)] if kind else list(self._kinds.values())
        now = self.now()
        purged: dict[str, int] = {}
        for state in targets:
            total = 0
            for spec in state.ttl_indexes:
                column = state.table.c[spec.fields[0]]
                cutoff = Datetime.seconds_ago(spec.expire_after_seconds, now)
                async with self._session_factory() as session:
                    result = await session.execute(delete(state.table).where(column < cutoff))
                    await session.commit()
                total += int(result.rowcount or 0)
            if state.ttl_indexes:
                purged[state.kind] = total
            if total:
                logger.info(f"expired_records_purged kind={state.kind} count={total}")
        return purged

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------
    def _build_table(self, kind: str, columns: Mapping[str, FieldType]) -> Table:
        return Table(
            kind,
            self._metadata,
            Column(
                RECORD_ID,
                BigInteger().with_variant(Integer, "sqlite"),
                primary_key=True,
                autoincrement=True,
            ),
            *[Column(name, ft.storage_type(), nullable=True) for name, ft in columns.items()],
            Column(OVERFLOW_COLUMN, JSONCompat, nullable=True),
        )

    async def _run_ddl(self, fn: Callable[[Any], Any], *, autocommit: bool = False) -> None:
        # PostgreSQL 的 CREATE INDEX CONCURRENTLY 不能运行在事务中
        if autocommit and self._engine.dialect.name == "postgresql":
            async with self._engine.connect() as conn:
                conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
                await conn.run_sync(fn)
            return
        async with self._engine.begin() as conn:
            await conn.run_sync(fn)

    def _enforce(self, state: EntityKindState, violations: list[Violation]) -> list[Violation]:
        if state.enforcement is EnforcementLevel.UNVALIDATED or not violations:
            return []
        if state.enforcement is EnforcementLevel.STRICT:
            raise SchemaViolationError(state.kind, violations)
        logger.warning(
            f"schema_violation_advisory kind={state.kind} violations={[str(v) for v in violations]}"
        )
        return violations

    @staticmethod
    def _to_document(record: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
        if isinstance(record, BaseModel):
            document = record.model_dump(exclude_none=True)
        elif isinstance(record, Mapping):
            document = {k: v for k, v in record.items() if v is not None}
        else:
            raise TypeError(f"record must be a mapping or pydantic model, got {type(record).__name__}")
        # id 由存储分配
        document.pop(RECORD_ID, None)
        document.pop(OVERFLOW_COLUMN, None)
        return document

    @staticmethod
    def _storage_value(field_type: FieldType, value: Any) -> Any:
        if field_type is FieldType.DATE:
            return Datetime.ensure_utc(value)
        if field_type in (FieldType.OBJECT, FieldType.ARRAY):
            return to_jsonable_python(value)
        return value

    def _to_row(self, state: EntityKindState, document: Mapping[str, Any]) -> dict[str, Any]:
        row: dict[str, Any] = {}
        overflow: dict[str, Any] = {}
        for key, value in document.items():
            field_type = state.columns.get(key)
            if field_type is not None and field_type.matches(value):
                row[key] = self._storage_value(field_type, value)
            else:
                overflow[key] = value
        if overflow:
            row[OVERFLOW_COLUMN] = to_jsonable_python(overflow)
        return row

    def _prepare_update(self, state: EntityKindState, values: Mapping[str, Any]) -> dict[str, Any]:
        if not values:
            raise ValueError("update values must not be empty")
        for key in values:
            if key not in state.columns:
                raise UnknownFieldError(state.kind, key)
        # 类型列无法承载类型不符的值，与执行级别无关
        type_violations = [
            Violation(key, "type", f"expected {state.columns[key].value}, got {type(value).__name__}")
            for key, value in values.items()
            if value is not None and not state.columns[key].matches(value)
        ]
        if type_violations:
            raise SchemaViolationError(state.kind, type_violations)
        self._enforce(state, state.schema.validate_partial(values))
        return {
            key: (None if value is None else self._storage_value(state.columns[key], value))
            for key, value in values.items()
        }

    @staticmethod
    def _decode(row: Mapping[str, Any]) -> dict[str, Any]:
        record = {k: v for k, v in row.items() if k != OVERFLOW_COLUMN and v is not None}
        for key, value in (row.get(OVERFLOW_COLUMN) or {}).items():
            record.setdefault(key, value)
        return record

    def _where(self, state: EntityKindState, filter_key: Mapping[str, Any]) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for key, value in filter_key.items():
            if key != RECORD_ID and key not in state.columns:
                raise UnknownFieldError(state.kind, key)
            column = state.table.c[key]
            clauses.append(column.is_(None) if value is None else column == value)
        clauses.extend(self._ttl_clauses(state))
        return clauses

    def _ttl_clauses(self, state: EntityKindState) -> list[ColumnElement[bool]]:
        if not state.ttl_indexes:
            return []
        now = self.now()
        clauses: list[ColumnElement[bool]] = []
        for spec in state.ttl_indexes:
            column = state.table.c[spec.fields[0]]
            cutoff = Datetime.seconds_ago(spec.expire_after_seconds, now)
            # 没有时间字段的记录永不过期
            clauses.append(or_(column.is_(None), column >= cutoff))
        return clauses

    def _ensure_indexed(
        self,
        state: EntityKindState,
        filter_fields: Iterable[str],
        sort: Sequence[IndexKey],
    ) -> None:
        if not self.require_indexed_queries:
            return
        fields = set(filter_fields)
        if RECORD_ID in fields or (not fields and not sort):
            return
        if any(spec.covers(fields, sort) for spec in state.indexes.values()):
            return
        raise UnindexedQueryError(
            f"{state.kind}: no index covers filter={sorted(fields)} "
            f"sort={[(f, int(d)) for f, d in sort]}"
        )

    def _cursor_values(
        self,
        state: EntityKindState,
        keys: Sequence[IndexKey],
        cursor: Any,
    ) -> list[Any]:
        first_type = state.columns.get(keys[0][0]) if keys else None
        if isinstance(cursor, CursorToken):
            values = decode_cursor(cursor)
        elif isinstance(cursor, str) and first_type is not FieldType.STRING:
            values = decode_cursor(cursor)
        elif isinstance(cursor, (list, tuple)):
            values = list(cursor)
        else:
            values = [cursor]
        if len(values) > len(keys):
            raise ValueError(f"cursor has {len(values)} values for {len(keys)} sort keys")
        coerced = []
        for (field_name, _), value in zip(keys, values):
            if isinstance(value, str) and state.columns.get(field_name) is FieldType.DATE:
                value = Datetime.from_iso_string(value)
            coerced.append(value)
        return coerced

    @staticmethod
    def resolve_limit(limit: int | None) -> int:
        """实际生效的分页大小：非正数取默认值，超过上限截断"""
        if limit is None or limit <= 0:
            return settings.STORE_PAGE_DEFAULT_LIMIT
        return min(int(limit), settings.STORE_PAGE_MAX_LIMIT)
