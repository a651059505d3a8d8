from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field, field_validator

from chatstore.schemas.base import BaseSchema


def normalize_conversation_id(value) -> str:
    """统一为小写带连字符的 UUID 字符串"""
    return str(uuid.UUID(str(value)))


class AgentMessageCreate(BaseSchema):
    conversation_id: str = Field(..., description="会话唯一标识 (UUID)")
    sender_id: int = Field(..., description="0 - Agent, 1 - Guest, 1001+ - 注册用户")
    content: str = Field(..., description="对话内容")
    created_at: datetime | None = Field(None, description="为空时由仓库填充当前时间")

    @field_validator("conversation_id", mode="before")
    @classmethod
    def _normalize_conversation_id(cls, value):
        return normalize_conversation_id(value)


class AgentMessage(AgentMessageCreate):
    id: int = Field(..., description="记录 ID")
    created_at: datetime = Field(..., description="消息创建时间")
