from typing import Any, Generic, TypeVar

from chatstore.schemas.base import BaseSchema
from chatstore.store.message_store import MessageStore

SchemaType = TypeVar("SchemaType", bound=BaseSchema)


class BaseRepository(Generic[SchemaType]):
    """通用仓库基类

    子类通过 `kind` / `schema` 属性声明所操作的实体与返回模型。
    """

    kind: str  # 子类应覆盖
    schema: type[SchemaType]

    def __init__(self, store: MessageStore):
        self.store = store
        if getattr(self, "kind", None) is None:
            raise ValueError("kind must be provided for BaseRepository")

    def _to_schema(self, record: dict[str, Any] | None) -> SchemaType | None:
        if record is None:
            return None
        return self.schema.model_validate(record)

    async def get(self, record_id: int) -> SchemaType | None:
        return self._to_schema(await self.store.get(self.kind, record_id))
