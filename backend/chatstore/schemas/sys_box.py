from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from chatstore.kinds.sys_box import NO_TARGET_ID, SYSTEM_SENDER_ID, NotifyType
from chatstore.schemas.base import BaseSchema
from chatstore.utils.time_utils import Datetime


class SysBoxCreate(BaseSchema):
    receiver_id: int = Field(..., description="消息接收者 ID")
    sender_id: int = Field(SYSTEM_SENDER_ID, description="动作发起者 ID (系统通知为 0)")
    type: NotifyType = Field(..., description="通知类型")
    target_id: int = Field(NO_TARGET_ID, description="关联的目标 ID，无目标（如被关注）为 0")
    content: str | None = Field(None, description="通知文案预览或评论片段")
    payload: dict[str, Any] | None = Field(None, description="额外元数据（帖子标题、评论 ID、头像快照）")
    is_read: bool = Field(False, description="是否已读")
    created_at: datetime = Field(default_factory=Datetime.now, description="创建时间")

    @field_validator("target_id", mode="before")
    @classmethod
    def _default_target_id(cls, value):
        # 唯一索引中 NULL 互不相等，无目标统一存 0 才能去重
        return NO_TARGET_ID if value is None else value


class SysBoxItem(SysBoxCreate):
    id: int = Field(..., description="通知 ID")
