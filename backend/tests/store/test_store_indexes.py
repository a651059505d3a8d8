import pytest

from chatstore.kinds import MESSAGES, ensure_kind
from chatstore.kinds.messages import MESSAGES_SCHEMA
from chatstore.store import (
    DuplicateKeyError,
    EntitySchema,
    FieldSpec,
    FieldType,
    IndexBuildError,
    IndexConflictError,
    IndexDefinitionError,
    IndexNotFoundError,
)

NOTES_SCHEMA = EntitySchema(
    fields={
        "owner_id": FieldSpec(FieldType.LONG, required=True),
        "slug": FieldSpec(FieldType.STRING),
        "created_at": FieldSpec(FieldType.DATE),
    }
)


@pytest.mark.asyncio
async def test_create_index_is_idempotent(store):
    await store.define_schema("notes", NOTES_SCHEMA)

    first = await store.create_index("notes", [("owner_id", 1)], name="idx_owner", background=True)
    second = await store.create_index("notes", [("owner_id", 1)], name="idx_owner")
    assert first == second
    assert [spec.name for spec in store.list_indexes("notes")] == ["idx_owner"]


@pytest.mark.asyncio
async def test_create_index_conflicts(store):
    await store.define_schema("notes", NOTES_SCHEMA)
    await store.create_index("notes", [("owner_id", 1)], name="idx_owner")

    # 同名不同规格
    with pytest.raises(IndexConflictError):
        await store.create_index("notes", [("owner_id", -1)], name="idx_owner")
    with pytest.raises(IndexConflictError):
        await store.create_index("notes", [("owner_id", 1)], name="idx_owner", unique=True)
    # 同规格不同名
    with pytest.raises(IndexConflictError):
        await store.create_index("notes", [("owner_id", 1)], name="idx_owner_again")


@pytest.mark.asyncio
async def test_create_index_validates_fields(store):
    await store.define_schema("notes", NOTES_SCHEMA)

    with pytest.raises(IndexDefinitionError):
        await store.create_index("notes", [("missing", 1)])
    with pytest.raises(IndexDefinitionError):
        await store.create_index("notes", [("slug", 1)], expire_after_seconds=60)

    spec = await store.create_index("notes", [("created_at", 1)], expire_after_seconds=60)
    assert spec.name == "ix_notes_created_at_asc"
    assert store.state("notes").ttl_indexes == [spec]


@pytest.mark.asyncio
async def test_unique_index_rejects_duplicates(store):
    await store.define_schema("notes", NOTES_SCHEMA)
    await store.create_index("notes", [("slug", 1)], name="uq_slug", unique=True)

    await store.append("notes", {"owner_id": 1, "slug": "hello"})
    with pytest.raises(DuplicateKeyError):
        await store.append("notes", {"owner_id": 2, "slug": "hello"})
    assert await store.count("notes", {"slug": "hello"}) == 1


@pytest.mark.asyncio
async def test_unique_index_build_fails_on_existing_duplicates(store):
    await store.define_schema("notes", NOTES_SCHEMA)
    await store.append("notes", {"owner_id": 1, "slug": "same"})
    await store.append("notes", {"owner_id": 2, "slug": "same"})

    with pytest.raises(IndexBuildError):
        await store.create_index("notes", [("slug", 1)], name="uq_slug", unique=True)
    assert store.list_indexes("notes") == []


@pytest.mark.asyncio
async def test_drop_index(store):
    await store.define_schema("notes", NOTES_SCHEMA)
    await store.create_index("notes", [("owner_id", 1)], name="idx_owner")

    await store.drop_index("notes", "idx_owner")
    assert store.list_indexes("notes") == []
    with pytest.raises(IndexNotFoundError):
        await store.drop_index("notes", "idx_owner")

    # 删除后可以重新创建
    await store.create_index("notes", [("owner_id", 1)], name="idx_owner")


@pytest.mark.asyncio
async def test_bootstrap_retires_legacy_time_index(store):
    await store.define_schema("messages", MESSAGES_SCHEMA)
    await store.create_index(
        "messages", [("conversation_id", 1), ("created_at", -1)], name="idx_conv_time"
    )

    await ensure_kind(store, MESSAGES)
    names = {spec.name for spec in store.list_indexes("messages")}
    assert names == {"idx_conv_seq", "idx_sender"}

    # 再次执行无副作用
    await ensure_kind(store, MESSAGES)
    assert {spec.name for spec in store.list_indexes("messages")} == names
    assert store.state("messages").version == 1
