"""
Agent 对话消息 (agent_messages)

conversation_id 为 UUID 字符串，与关系库中的会话表无关；记录 30 天后过期。
"""

from __future__ import annotations

from chatstore.core.config import settings
from chatstore.store.enforcement import EnforcementLevel
from chatstore.store.schema import EntitySchema, FieldSpec, FieldType

from .base import IndexDeclaration, KindDefinition

AGENT_MESSAGES_KIND = "agent_messages"

AGENT_SENDER_ID = 0
GUEST_SENDER_ID = 1
FIRST_USER_SENDER_ID = 1001

AGENT_MESSAGES_SCHEMA = EntitySchema(
    description="Agent 对话消息",
    fields={
        "conversation_id": FieldSpec(FieldType.STRING, required=True, description="会话唯一标识 (UUID)"),
        "sender_id": FieldSpec(FieldType.LONG, required=True, description="0: Agent, 1: Guest, 1001+: User"),
        "content": FieldSpec(FieldType.STRING, required=True, description="对话内容"),
        "created_at": FieldSpec(FieldType.DATE, required=True, description="消息创建时间"),
    },
)

AGENT_MESSAGES = KindDefinition(
    kind=AGENT_MESSAGES_KIND,
    schema=AGENT_MESSAGES_SCHEMA,
    enforcement=EnforcementLevel.STRICT,
    indexes=(
        # 按会话拉取历史记录
        IndexDeclaration(
            keys=(("conversation_id", 1), ("created_at", -1)),
            name="idx_agent_conv_time",
            background=True,
        ),
        IndexDeclaration(
            keys=(("created_at", 1),),
            expire_after_seconds=settings.AGENT_MESSAGE_TTL_SECONDS,
        ),
    ),
)
