import pytest

from chatstore.store.errors import IndexDefinitionError
from chatstore.store.indexes import IndexDirection, build_index_spec, normalize_keys


def test_default_name_derived_from_keys():
    spec = build_index_spec("agent_messages", [("created_at", 1)])
    assert spec.name == "ix_agent_messages_created_at_asc"

    spec = build_index_spec("messages", [("conversation_id", 1), ("seq", -1)])
    assert spec.name == "ix_messages_conversation_id_asc_seq_desc"
    assert spec.keys_document() == [["conversation_id", 1], ["seq", -1]]


def test_covers_requires_filter_prefix_and_sort_direction():
    spec = build_index_spec("messages", [("conversation_id", 1), ("seq", -1)], name="idx_conv_seq")
    desc = (("seq", IndexDirection.DESC),)
    asc = (("seq", IndexDirection.ASC),)

    assert spec.covers({"conversation_id"}, desc)
    # 整体反向扫描同样可用
    assert spec.covers({"conversation_id"}, asc)
    assert spec.covers({"conversation_id"}, ())
    assert not spec.covers({"seq"}, ())
    assert not spec.covers({"conversation_id", "sender_id"}, ())
    assert not spec.covers(set(), (("created_at", IndexDirection.DESC),))


def test_covers_rejects_mixed_direction_flip():
    spec = build_index_spec("t", [("a", 1), ("b", -1), ("c", 1)])
    assert spec.covers({"a"}, (("b", IndexDirection.DESC), ("c", IndexDirection.ASC)))
    assert spec.covers({"a"}, (("b", IndexDirection.ASC), ("c", IndexDirection.DESC)))
    assert not spec.covers({"a"}, (("b", IndexDirection.DESC), ("c", IndexDirection.DESC)))


def test_same_definition_ignores_background():
    a = build_index_spec("t", [("a", 1)], name="ix_a", background=True)
    b = build_index_spec("t", [("a", 1)], name="ix_a")
    c = build_index_spec("t", [("a", 1)], name="ix_a", unique=True)
    assert a.same_definition(b)
    assert not a.same_definition(c)


@pytest.mark.parametrize(
    "keys",
    [
        [],
        [("a", 2)],
        [("a", 1), ("a", -1)],
        [("", 1)],
        ["a"],
    ],
)
def test_invalid_key_specs_rejected(keys):
    with pytest.raises(IndexDefinitionError):
        normalize_keys(keys)


def test_ttl_options_validated():
    spec = build_index_spec("t", [("created_at", 1)], expire_after_seconds=60)
    assert spec.is_ttl

    with pytest.raises(IndexDefinitionError):
        build_index_spec("t", [("created_at", 1)], expire_after_seconds=0)
    with pytest.raises(IndexDefinitionError):
        build_index_spec("t", [("a", 1), ("created_at", 1)], expire_after_seconds=60)


def test_long_default_name_requires_explicit_name():
    keys = [(f"field_number_{i}", 1) for i in range(5)]
    with pytest.raises(IndexDefinitionError):
        build_index_spec("some_kind", keys)
    assert build_index_spec("some_kind", keys, name="ix_short").name == "ix_short"
