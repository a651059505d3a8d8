from __future__ import annotations

from chatstore.kinds.messages import MESSAGES_KIND
from chatstore.repositories.base import BaseRepository
from chatstore.schemas.message import Message, MessageCreate


class MessageRepository(BaseRepository[Message]):
    kind = MESSAGES_KIND
    schema = Message

    async def save_message(self, msg: MessageCreate) -> int:
        """写入一条消息，返回记录 ID"""
        result = await self.store.append(self.kind, msg)
        return result.inserted_id

    async def get_history(
        self,
        conversation_id: int,
        last_seq: int = 0,
        page_size: int = 20,
    ) -> list[Message]:
        """
        历史消息查询，按 seq 降序（最新在前）。
        last_seq 为当前页面最旧一条消息的序号，第一页传 0。
        """
        cursor = (last_seq,) if last_seq > 0 else None
        records = await self.store.page_by_key(
            self.kind,
            {"conversation_id": conversation_id},
            [("seq", -1)],
            cursor=cursor,
            limit=page_size,
        ).to_list()
        return [Message.model_validate(record) for record in records]

    async def get_message_by_seq(self, conversation_id: int, seq: int) -> Message | None:
        record = await self.store.find_one(
            self.kind,
            {"conversation_id": conversation_id, "seq": seq},
        )
        return self._to_schema(record)
