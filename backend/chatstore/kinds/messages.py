"""
会话消息 (messages)

分页以 (conversation_id, seq) 为准：seq 由外部序号生成器按会话单调分配，
created_at 在并发写入下不是可靠的全序，旧的 idx_conv_time 作为遗留索引下线。
"""

from __future__ import annotations

import enum

from chatstore.store.enforcement import EnforcementLevel
from chatstore.store.schema import EntitySchema, FieldSpec, FieldType

from .base import IndexDeclaration, KindDefinition

MESSAGES_KIND = "messages"


class MsgType(int, enum.Enum):
    TEXT = 1
    IMAGE = 2
    VOICE = 3
    VIDEO = 4
    FILE = 5
    RECALL = 6  # 撤回提醒


MESSAGE_PAYLOAD_PROPERTIES = {
    "url": FieldSpec(FieldType.STRING),
    "width": FieldSpec(FieldType.INT),
    "height": FieldSpec(FieldType.INT),
    "duration": FieldSpec(FieldType.DOUBLE),
    "mime_type": FieldSpec(FieldType.STRING),
    "cover_url": FieldSpec(FieldType.STRING),
}

MESSAGES_SCHEMA = EntitySchema(
    description="会话消息明细",
    fields={
        "conversation_id": FieldSpec(FieldType.LONG, required=True, description="关联外部会话 ID"),
        "sender_id": FieldSpec(FieldType.LONG, required=True, description="发送者用户 ID"),
        "msg_type": FieldSpec(
            FieldType.INT,
            required=True,
            enum=tuple(t.value for t in MsgType),
            description="消息类型: 1-文本, 2-图片, 3-语音, 4-视频, 5-文件, 6-撤回提醒",
        ),
        "content": FieldSpec(FieldType.STRING, required=True, description="文本内容或消息预览"),
        "payload": FieldSpec(
            FieldType.OBJECT,
            description="结构化媒体信息 (可选)",
            properties=MESSAGE_PAYLOAD_PROPERTIES,
        ),
        "seq": FieldSpec(FieldType.LONG, required=True, description="会话内唯一有序序号"),
        "reply_to": FieldSpec(FieldType.LONG, description="被回复消息的 seq"),
        "created_at": FieldSpec(FieldType.DATE, required=True),
    },
)

MESSAGES = KindDefinition(
    kind=MESSAGES_KIND,
    schema=MESSAGES_SCHEMA,
    enforcement=EnforcementLevel.STRICT,
    indexes=(
        # 支撑聊天记录分页加载
        IndexDeclaration(keys=(("conversation_id", 1), ("seq", -1)), name="idx_conv_seq", background=True),
        # 支撑用户发送记录检索
        IndexDeclaration(keys=(("sender_id", 1),), name="idx_sender", background=True),
    ),
    legacy_indexes=("idx_conv_time",),
)
