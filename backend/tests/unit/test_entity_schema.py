from datetime import UTC, datetime

import pytest

from chatstore.kinds.messages import MESSAGES_SCHEMA
from chatstore.store.errors import SchemaDefinitionError
from chatstore.store.schema import (
    EntitySchema,
    EnumRule,
    FieldSpec,
    FieldType,
    NestedRule,
    RequiredRule,
    TypeRule,
)


def _message(**overrides):
    record = {
        "conversation_id": 100,
        "sender_id": 7,
        "msg_type": 1,
        "content": "hi",
        "seq": 1,
        "created_at": datetime(2024, 1, 1, tzinfo=UTC),
    }
    record.update(overrides)
    return record


def test_valid_message_has_no_violations():
    assert MESSAGES_SCHEMA.validate(_message()) == []


def test_missing_required_field_reported():
    record = _message()
    record.pop("seq")

    violations = MESSAGES_SCHEMA.validate(record)
    assert [(v.field, v.code) for v in violations] == [("seq", "required")]


def test_all_violations_are_collected():
    record = _message(msg_type=9, content=123)
    record.pop("sender_id")

    codes = {(v.field, v.code) for v in MESSAGES_SCHEMA.validate(record)}
    assert codes == {("sender_id", "required"), ("msg_type", "enum"), ("content", "type")}


def test_bool_is_not_an_integer():
    assert not FieldType.LONG.matches(True)
    assert not FieldType.INT.matches(False)
    assert FieldType.BOOL.matches(True)
    assert FieldType.DOUBLE.matches(3)
    assert not FieldType.INT.matches(2**31)
    assert FieldType.LONG.matches(2**31)


def test_enum_rule_distinguishes_bool_from_int():
    rule = EnumRule("flag", (1, 2))
    assert rule.evaluate({"flag": 1}) == []
    assert [v.code for v in rule.evaluate({"flag": True})] == ["enum"]


def test_nested_rule_prefixes_sub_fields():
    violations = MESSAGES_SCHEMA.validate(_message(payload={"width": "wide", "url": "http://x"}))
    assert [(v.field, v.code) for v in violations] == [("payload.width", "type")]


def test_rules_compile_to_tagged_variants():
    schema = EntitySchema(
        fields={
            "status": FieldSpec(FieldType.INT, required=True, enum=(1, 2)),
            "meta": FieldSpec(FieldType.OBJECT, properties={"tag": FieldSpec(FieldType.STRING)}),
        }
    )
    kinds = [type(rule) for rule in schema.rules]
    assert kinds == [RequiredRule, TypeRule, EnumRule, TypeRule, NestedRule]
    assert schema.required_fields == frozenset({"status"})


def test_validate_partial_only_checks_given_fields():
    assert MESSAGES_SCHEMA.validate_partial({"content": "edited"}) == []
    violations = MESSAGES_SCHEMA.validate_partial({"content": None})
    assert [(v.field, v.code) for v in violations] == [("content", "required")]


def test_document_round_trip_preserves_schema():
    restored = EntitySchema.from_document(MESSAGES_SCHEMA.to_document())
    assert restored.to_document() == MESSAGES_SCHEMA.to_document()
    assert restored.fields["payload"].properties["width"].type is FieldType.INT


@pytest.mark.parametrize("name", ["id", "extra", "Bad", "1st", "with-dash"])
def test_reserved_or_invalid_field_names_rejected(name):
    with pytest.raises(SchemaDefinitionError):
        EntitySchema(fields={name: FieldSpec(FieldType.STRING)})


def test_properties_only_allowed_on_objects():
    with pytest.raises(SchemaDefinitionError):
        FieldSpec(FieldType.STRING, properties={"x": FieldSpec(FieldType.INT)})
