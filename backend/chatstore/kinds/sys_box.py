"""
系统通知 (sys_box)
"""

from __future__ import annotations

import enum

from chatstore.store.enforcement import EnforcementLevel
from chatstore.store.schema import EntitySchema, FieldSpec, FieldType

from .base import IndexDeclaration, KindDefinition

SYS_BOX_KIND = "sys_box"
SYSTEM_SENDER_ID = 0  # 系统通知的发起者
NO_TARGET_ID = 0  # 无关联目标（被关注等）


class NotifyType(int, enum.Enum):
    LIKE = 1  # 帖子点赞
    FAVORITE = 2  # 帖子收藏
    COMMENT = 3  # 帖子评论
    COMMENT_LIKE = 4  # 评论点赞
    FOLLOW = 5  # 被关注


SYS_BOX_SCHEMA = EntitySchema(
    description="系统通知",
    fields={
        "receiver_id": FieldSpec(FieldType.LONG, required=True, description="消息接收者 ID"),
        "sender_id": FieldSpec(FieldType.LONG, required=True, description="动作发起者 ID (系统通知为 0)"),
        "type": FieldSpec(
            FieldType.INT,
            required=True,
            enum=tuple(t.value for t in NotifyType),
            description="通知类型: 1-帖子点赞, 2-帖子收藏, 3-帖子评论, 4-评论点赞, 5-被关注",
        ),
        "target_id": FieldSpec(FieldType.LONG, description="关联的目标 ID (如帖子 ID、评论 ID)，无目标写 0"),
        "content": FieldSpec(FieldType.STRING, description="通知文案预览或评论片段"),
        "payload": FieldSpec(
            FieldType.OBJECT,
            description="额外元数据 (可选)",
            properties={
                "post_title": FieldSpec(FieldType.STRING),
                "comment_id": FieldSpec(FieldType.LONG),
                "avatar": FieldSpec(FieldType.STRING),
            },
        ),
        "is_read": FieldSpec(FieldType.BOOL, required=True, description="是否已读"),
        "created_at": FieldSpec(FieldType.DATE, required=True),
    },
)

SYS_BOX = KindDefinition(
    kind=SYS_BOX_KIND,
    schema=SYS_BOX_SCHEMA,
    enforcement=EnforcementLevel.STRICT,
    indexes=(
        # 收信箱列表 (按时间倒序)
        IndexDeclaration(keys=(("receiver_id", 1), ("created_at", -1)), name="idx_receiver_time", background=True),
        # 未读数红点
        IndexDeclaration(keys=(("receiver_id", 1), ("is_read", 1)), name="idx_unread_count", background=True),
        # 同一动作不重复通知
        IndexDeclaration(
            keys=(("receiver_id", 1), ("sender_id", 1), ("type", 1), ("target_id", 1)),
            name="idx_unique_notify",
            unique=True,
            background=True,
        ),
    ),
)
