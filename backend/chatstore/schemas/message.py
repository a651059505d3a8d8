from __future__ import annotations

from datetime import datetime

from pydantic import Field

from chatstore.kinds.messages import MsgType
from chatstore.schemas.base import BaseSchema
from chatstore.utils.time_utils import Datetime


class MessagePayload(BaseSchema):
    url: str | None = Field(None, description="媒体地址")
    width: int | None = Field(None, description="宽度")
    height: int | None = Field(None, description="高度")
    duration: float | None = Field(None, description="时长（秒）")
    mime_type: str | None = Field(None, description="MIME 类型")
    cover_url: str | None = Field(None, description="封面地址")


class MessageCreate(BaseSchema):
    conversation_id: int = Field(..., description="关联外部会话 ID")
    sender_id: int = Field(..., description="发送者 UID")
    msg_type: MsgType = Field(MsgType.TEXT, validate_default=True, description="消息类型")
    content: str = Field(..., description="文本内容或消息预览")
    payload: MessagePayload | None = Field(None, description="结构化附件")
    seq: int = Field(..., description="会话内唯一绝对序号（外部分配）")
    reply_to: int | None = Field(None, description="被回复的消息 seq")
    created_at: datetime = Field(default_factory=Datetime.now, description="消息发送时间")


class Message(MessageCreate):
    id: int = Field(..., description="记录 ID")
