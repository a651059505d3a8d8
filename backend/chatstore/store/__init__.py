from .cursor import CursorToken, RecordCursor, decode_cursor, encode_cursor
from .enforcement import EnforcementLevel, EnforcementStateMachine
from .errors import (
    DuplicateKeyError,
    DuplicateNotificationError,
    EnforcementDowngradeError,
    IndexBuildError,
    IndexConflictError,
    IndexDefinitionError,
    IndexNotFoundError,
    NotificationNotFoundError,
    SchemaDefinitionError,
    SchemaViolationError,
    StoreError,
    StoreIndexError,
    UnindexedQueryError,
    UnknownEntityKindError,
    UnknownFieldError,
)
from .indexes import IndexDirection, IndexSpec
from .message_store import EntityKindState, InsertResult, MessageStore
from .schema import (
    EntitySchema,
    EnumRule,
    FieldSpec,
    FieldType,
    NestedRule,
    RequiredRule,
    TypeRule,
    Violation,
)

__all__ = [
    "CursorToken",
    "DuplicateKeyError",
    "DuplicateNotificationError",
    "EnforcementDowngradeError",
    "EnforcementLevel",
    "EnforcementStateMachine",
    "EntityKindState",
    "EntitySchema",
    "EnumRule",
    "FieldSpec",
    "FieldType",
    "IndexBuildError",
    "IndexConflictError",
    "IndexDefinitionError",
    "IndexDirection",
    "IndexNotFoundError",
    "IndexSpec",
    "InsertResult",
    "MessageStore",
    "NestedRule",
    "NotificationNotFoundError",
    "RecordCursor",
    "RequiredRule",
    "SchemaDefinitionError",
    "SchemaViolationError",
    "StoreError",
    "StoreIndexError",
    "TypeRule",
    "UnindexedQueryError",
    "UnknownEntityKindError",
    "UnknownFieldError",
    "Violation",
    "decode_cursor",
    "encode_cursor",
]
