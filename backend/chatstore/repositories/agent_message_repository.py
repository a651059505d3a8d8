from __future__ import annotations

from chatstore.kinds.agent_messages import AGENT_MESSAGES_KIND
from chatstore.repositories.base import BaseRepository
from chatstore.schemas.agent_message import (
    AgentMessage,
    AgentMessageCreate,
    normalize_conversation_id,
)


class AgentMessageRepository(BaseRepository[AgentMessage]):
    kind = AGENT_MESSAGES_KIND
    schema = AgentMessage

    async def save_message(self, msg: AgentMessageCreate) -> int:
        """直接存储，created_at 为空时使用存储时钟"""
        if msg.created_at is None:
            msg = msg.model_copy(update={"created_at": self.store.now()})
        result = await self.store.append(self.kind, msg)
        return result.inserted_id

    async def get_history(self, conversation_id: str, limit: int = 20) -> list[AgentMessage]:
        """
        按时间线拉取最近 limit 条，返回顺序为从旧到新
        """
        if limit <= 0:
            limit = 20
        records = await self.store.page_by_key(
            self.kind,
            {"conversation_id": normalize_conversation_id(conversation_id)},
            [("created_at", -1)],
            limit=limit,
        ).to_list()
        messages = [AgentMessage.model_validate(record) for record in records]
        messages.reverse()
        return messages
