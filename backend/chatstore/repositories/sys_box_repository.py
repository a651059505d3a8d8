from __future__ import annotations

from chatstore.core.logging import logger
from chatstore.kinds.sys_box import SYS_BOX_KIND
from chatstore.repositories.base import BaseRepository
from chatstore.schemas.base import CursorPage
from chatstore.schemas.sys_box import SysBoxCreate, SysBoxItem
from chatstore.store.cursor import CursorToken
from chatstore.store.errors import (
    DuplicateKeyError,
    DuplicateNotificationError,
    NotificationNotFoundError,
)


class SysBoxRepository(BaseRepository[SysBoxItem]):
    """系统通知仓库"""

    kind = SYS_BOX_KIND
    schema = SysBoxItem

    async def create_notification(self, msg: SysBoxCreate, dedupe: bool = True) -> int:
        """
        插入新通知。

        同一 (receiver_id, sender_id, type, target_id) 已存在时：
        dedupe=True 返回已有通知 ID，否则抛出 DuplicateNotificationError。
        """
        try:
            result = await self.store.append(self.kind, msg)
        except DuplicateKeyError as exc:
            if not dedupe:
                raise DuplicateNotificationError(self.kind, str(exc)) from exc
            existing = await self.store.find_one(
                self.kind,
                {
                    "receiver_id": msg.receiver_id,
                    "sender_id": msg.sender_id,
                    "type": msg.type,
                    "target_id": msg.target_id,
                },
            )
            if existing is None:
                raise
            logger.debug(
                f"sys_box_notification_deduped receiver_id={msg.receiver_id} id={existing['id']}"
            )
            return int(existing["id"])
        return result.inserted_id

    async def get_notification_list(
        self,
        user_id: int,
        limit: int = 20,
        cursor: str | None = None,
    ) -> CursorPage[SysBoxItem]:
        """分页获取用户的通知列表 (按时间倒序)"""
        page_size = self.store.resolve_limit(limit)
        records_cursor = self.store.page_by_key(
            self.kind,
            {"receiver_id": user_id},
            [("created_at", -1)],
            cursor=CursorToken(cursor) if cursor else None,
            limit=page_size,
        )
        records = await records_cursor.to_list()
        # 取满一页才可能还有下一页
        next_cursor = records_cursor.token_after(records[-1]) if len(records) == page_size else None
        return CursorPage[SysBoxItem](
            items=[SysBoxItem.model_validate(record) for record in records],
            next_cursor=next_cursor,
        )

    async def mark_as_read(self, user_id: int, msg_id: int) -> None:
        """标记单条通知为已读"""
        matched = await self.store.update_one(
            self.kind,
            msg_id,
            {"is_read": True},
            filter_key={"receiver_id": user_id},
        )
        if not matched:
            raise NotificationNotFoundError(f"notification {msg_id} not found for user {user_id}")

    async def mark_all_as_read(self, user_id: int) -> int:
        """一键清除未读"""
        return await self.store.update_many(
            self.kind,
            {"receiver_id": user_id, "is_read": False},
            {"is_read": True},
        )

    async def get_unread_count(self, user_id: int) -> int:
        return await self.store.count(self.kind, {"receiver_id": user_id, "is_read": False})

    async def get_by_id(self, msg_id: int) -> SysBoxItem | None:
        return await self.get(msg_id)
