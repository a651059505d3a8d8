"""
实体 schema 与校验规则

字段约束以声明式 FieldSpec 描述，编译为一组带标签的规则变体：
- RequiredRule：必填字段缺失
- TypeRule：值类型不符
- EnumRule：值不在允许集合内
- NestedRule：对象字段的子属性约束

规则只做结构校验，不执行任何业务代码。
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from typing import Any, ClassVar

from sqlalchemy import BigInteger, Boolean, Float, Integer, Text
from sqlalchemy.types import TypeEngine

from chatstore.models.base import JSONCompat, UTCDateTime

from .errors import SchemaDefinitionError

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

# id 为存储分配的记录主键，extra 为溢出文档列
RESERVED_FIELDS = frozenset({"id", "extra"})
FIELD_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,62}$")


class FieldType(str, enum.Enum):
    LONG = "long"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    BOOL = "bool"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"

    def matches(self, value: Any) -> bool:
        # bool 是 int 的子类，整数类型必须排除
        if self in (FieldType.LONG, FieldType.INT):
            if isinstance(value, bool) or not isinstance(value, int):
                return False
            if self is FieldType.INT:
                return INT32_MIN <= value <= INT32_MAX
            return INT64_MIN <= value <= INT64_MAX
        if self is FieldType.DOUBLE:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self is FieldType.STRING:
            return isinstance(value, str)
        if self is FieldType.BOOL:
            return isinstance(value, bool)
        if self is FieldType.DATE:
            return isinstance(value, datetime)
        if self is FieldType.OBJECT:
            return isinstance(value, Mapping)
        return isinstance(value, (list, tuple))

    def storage_type(self) -> TypeEngine:
        return _STORAGE_TYPES[self]()


_STORAGE_TYPES: dict[FieldType, type[TypeEngine] | Any] = {
    FieldType.LONG: BigInteger,
    FieldType.INT: Integer,
    FieldType.DOUBLE: Float,
    FieldType.STRING: Text,
    FieldType.BOOL: Boolean,
    FieldType.DATE: UTCDateTime,
    FieldType.OBJECT: JSONCompat,
    FieldType.ARRAY: JSONCompat,
}


@dataclass(frozen=True)
class Violation:
    field: str
    code: str  # required / type / enum
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True)
class RequiredRule:
    tag: ClassVar[str] = "required"
    field: str

    def evaluate(self, record: Mapping[str, Any], prefix: str = "") -> list[Violation]:
        if record.get(self.field) is None:
            return [Violation(prefix + self.field, self.tag, "required field is missing")]
        return []


@dataclass(frozen=True)
class TypeRule:
    tag: ClassVar[str] = "type"
    field: str
    field_type: FieldType

    def evaluate(self, record: Mapping[str, Any], prefix: str = "") -> list[Violation]:
        value = record.get(self.field)
        if value is None or self.field_type.matches(value):
            return []
        return [
            Violation(
                prefix + self.field,
                self.tag,
                f"expected {self.field_type.value}, got {type(value).__name__}",
            )
        ]


@dataclass(frozen=True)
class EnumRule:
    tag: ClassVar[str] = "enum"
    field: str
    values: tuple[Any, ...]

    def evaluate(self, record: Mapping[str, Any], prefix: str = "") -> list[Violation]:
        value = record.get(self.field)
        if value is None:
            return []
        # 1 == True，bool 与数字不能互相匹配
        if any(
            v == value and isinstance(v, bool) == isinstance(value, bool) for v in self.values
        ):
            return []
        return [
            Violation(prefix + self.field, self.tag, f"{value!r} not in {list(self.values)}")
        ]


@dataclass(frozen=True)
class NestedRule:
    tag: ClassVar[str] = "nested"
    field: str
    rules: tuple[Rule, ...]

    def evaluate(self, record: Mapping[str, Any], prefix: str = "") -> list[Violation]:
        value = record.get(self.field)
        if not isinstance(value, Mapping):
            return []
        violations: list[Violation] = []
        for rule in self.rules:
            violations.extend(rule.evaluate(value, f"{prefix}{self.field}."))
        return violations


Rule = RequiredRule | TypeRule | EnumRule | NestedRule


@dataclass(frozen=True)
class FieldSpec:
    type: FieldType
    required: bool = False
    enum: tuple[Any, ...] | None = None
    description: str | None = None
    properties: Mapping[str, FieldSpec] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", FieldType(self.type))
        if self.enum is not None:
            object.__setattr__(self, "enum", tuple(self.enum))
        if self.properties is not None and self.type is not FieldType.OBJECT:
            raise SchemaDefinitionError("properties are only allowed on object fields")

    def compile(self, name: str) -> list[Rule]:
        rules: list[Rule] = []
        if self.required:
            rules.append(RequiredRule(name))
        rules.append(TypeRule(name, self.type))
        if self.enum:
            rules.append(EnumRule(name, self.enum))
        if self.properties:
            nested: list[Rule] = []
            for sub_name, sub_spec in self.properties.items():
                nested.extend(sub_spec.compile(sub_name))
            rules.append(NestedRule(name, tuple(nested)))
        return rules

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"type": self.type.value, "required": self.required}
        if self.enum is not None:
            doc["enum"] = list(self.enum)
        if self.description:
            doc["description"] = self.description
        if self.properties:
            doc["properties"] = {k: v.to_document() for k, v in self.properties.items()}
        return doc

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> FieldSpec:
        properties = doc.get("properties")
        return cls(
            type=FieldType(doc["type"]),
            required=bool(doc.get("required", False)),
            enum=tuple(doc["enum"]) if doc.get("enum") is not None else None,
            description=doc.get("description"),
            properties=(
                {k: cls.from_document(v) for k, v in properties.items()} if properties else None
            ),
        )


@dataclass(frozen=True)
class EntitySchema:
    """
    一种实体的字段约束集合
    """

    fields: Mapping[str, FieldSpec] = field(default_factory=dict)
    description: str | None = None

    def __post_init__(self) -> None:
        for name in self.fields:
            if name in RESERVED_FIELDS or not FIELD_NAME_PATTERN.match(name):
                raise SchemaDefinitionError(f"invalid field name: {name!r}")

    @cached_property
    def rules(self) -> tuple[Rule, ...]:
        compiled: list[Rule] = []
        for name, spec in self.fields.items():
            compiled.extend(spec.compile(name))
        return tuple(compiled)

    @property
    def required_fields(self) -> frozenset[str]:
        return frozenset(name for name, spec in self.fields.items() if spec.required)

    def validate(self, record: Mapping[str, Any]) -> list[Violation]:
        violations: list[Violation] = []
        for rule in self.rules:
            violations.extend(rule.evaluate(record))
        return violations

    def validate_partial(self, values: Mapping[str, Any]) -> list[Violation]:
        """
        只校验 values 中出现的字段（用于更新）；必填字段不允许置空。
        """
        violations: list[Violation] = []
        for rule in self.rules:
            if rule.field not in values:
                continue
            violations.extend(rule.evaluate(values))
        return violations

    def to_document(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "fields": {name: spec.to_document() for name, spec in self.fields.items()},
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> EntitySchema:
        return cls(
            fields={
                name: FieldSpec.from_document(spec)
                for name, spec in (doc.get("fields") or {}).items()
            },
            description=doc.get("description"),
        )
