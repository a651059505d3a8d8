from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import Violation


class StoreError(Exception):
    """存储层异常基类"""


class UnknownEntityKindError(StoreError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"entity kind not defined: {kind}")


class SchemaDefinitionError(StoreError):
    """schema 定义本身不合法（字段名 / 类型变更等）"""


class UnknownFieldError(StoreError):
    def __init__(self, kind: str, field: str):
        self.kind = kind
        self.field = field
        super().__init__(f"{kind}: unknown field {field!r}")


class SchemaViolationError(StoreError):
    """
    记录未通过 strict 校验。

    violations 保留全部违规项，便于调用方一次性修正。
    """

    def __init__(self, kind: str, violations: Sequence[Violation]):
        self.kind = kind
        self.violations = tuple(violations)
        detail = "; ".join(str(v) for v in self.violations)
        super().__init__(f"{kind}: schema validation failed: {detail}")


class EnforcementDowngradeError(StoreError):
    def __init__(self, kind: str, current: str, target: str):
        self.kind = kind
        self.current = current
        self.target = target
        super().__init__(f"{kind}: enforcement cannot move from {current} to {target}")


class StoreIndexError(StoreError):
    """索引相关异常基类"""


class IndexDefinitionError(StoreIndexError):
    """键规格或选项不合法"""


class IndexConflictError(StoreIndexError):
    """索引名已被不同规格占用，或相同规格已以其他名字存在"""


class IndexBuildError(StoreIndexError):
    """引擎构建索引失败（例如已有数据违反唯一约束）"""


class IndexNotFoundError(StoreIndexError):
    pass


class UnindexedQueryError(StoreIndexError):
    """过滤 + 排序组合没有匹配的索引"""


class DuplicateKeyError(StoreError):
    def __init__(self, kind: str, detail: str | None = None):
        self.kind = kind
        super().__init__(f"{kind}: duplicate key" + (f" ({detail})" if detail else ""))


class DuplicateNotificationError(DuplicateKeyError):
    """同一动作的通知已存在"""


class NotificationNotFoundError(StoreError):
    pass
