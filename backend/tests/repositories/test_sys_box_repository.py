from datetime import timedelta

import pytest

from chatstore.core.config import settings
from chatstore.kinds import NO_TARGET_ID, NotifyType
from chatstore.repositories import SysBoxRepository
from chatstore.schemas import SysBoxCreate
from chatstore.store import DuplicateNotificationError, NotificationNotFoundError


def _like(clock, **overrides) -> SysBoxCreate:
    data = {
        "receiver_id": 5,
        "sender_id": 9,
        "type": NotifyType.LIKE,
        "target_id": 42,
        "content": "赞了你的帖子",
        "payload": {"post_title": "hello", "avatar": "https://cdn/a.png"},
        "created_at": clock.current,
    }
    data.update(overrides)
    return SysBoxCreate(**data)


@pytest.mark.asyncio
async def test_duplicate_notification_is_suppressed(builtin_store, clock):
    repo = SysBoxRepository(builtin_store)

    first = await repo.create_notification(_like(clock))
    again = await repo.create_notification(_like(clock, created_at=clock.current + timedelta(minutes=1)))
    assert again == first
    assert await repo.get_unread_count(5) == 1

    with pytest.raises(DuplicateNotificationError):
        await repo.create_notification(_like(clock), dedupe=False)

    # 目标不同则是新通知
    other = await repo.create_notification(_like(clock, target_id=43))
    assert other != first
    assert await repo.get_unread_count(5) == 2


@pytest.mark.asyncio
async def test_notification_list_uses_cursor(builtin_store, clock):
    repo = SysBoxRepository(builtin_store)
    ids = []
    for i in range(3):
        ids.append(
            await repo.create_notification(
                _like(clock, target_id=100 + i, created_at=clock.current + timedelta(minutes=i))
            )
        )
    await repo.create_notification(_like(clock, receiver_id=6))

    page = await repo.get_notification_list(5, limit=2)
    assert [item.id for item in page.items] == [ids[2], ids[1]]
    assert page.next_cursor

    rest = await repo.get_notification_list(5, limit=2, cursor=page.next_cursor)
    assert [item.id for item in rest.items] == [ids[0]]
    assert rest.next_cursor is None

    item = rest.items[0]
    assert item.type == NotifyType.LIKE
    assert item.payload == {"post_title": "hello", "avatar": "https://cdn/a.png"}
    assert item.is_read is False


@pytest.mark.asyncio
async def test_mark_as_read(builtin_store, clock):
    repo = SysBoxRepository(builtin_store)
    first = await repo.create_notification(_like(clock))
    await repo.create_notification(_like(clock, type=NotifyType.FAVORITE))
    await repo.create_notification(_like(clock, type=NotifyType.FOLLOW, target_id=None))
    assert await repo.get_unread_count(5) == 3

    await repo.mark_as_read(5, first)
    assert (await repo.get_by_id(first)).is_read is True
    assert await repo.get_unread_count(5) == 2

    with pytest.raises(NotificationNotFoundError):
        await repo.mark_as_read(6, first)

    assert await repo.mark_all_as_read(5) == 2
    assert await repo.get_unread_count(5) == 0
    assert await repo.mark_all_as_read(5) == 0


@pytest.mark.asyncio
async def test_system_notification_defaults(builtin_store, clock):
    repo = SysBoxRepository(builtin_store)
    msg_id = await repo.create_notification(
        SysBoxCreate(receiver_id=8, type=NotifyType.COMMENT, content="系统公告")
    )

    item = await repo.get_by_id(msg_id)
    assert item.sender_id == 0
    assert item.target_id == 0
    assert item.payload is None
    assert await repo.get_by_id(msg_id + 100) is None


@pytest.mark.asyncio
async def test_repeated_follow_is_suppressed(builtin_store, clock):
    repo = SysBoxRepository(builtin_store)
    follow = SysBoxCreate(receiver_id=5, sender_id=9, type=NotifyType.FOLLOW, created_at=clock.current)

    first = await repo.create_notification(follow)
    again = await repo.create_notification(follow.model_copy(update={"created_at": clock.current + timedelta(hours=1)}))
    assert again == first
    assert (await repo.get_by_id(first)).target_id == NO_TARGET_ID

    page = await repo.get_notification_list(5)
    assert [item.id for item in page.items] == [first]

    with pytest.raises(DuplicateNotificationError):
        await repo.create_notification(follow, dedupe=False)


@pytest.mark.asyncio
async def test_notification_list_cursor_with_default_limit(builtin_store, clock):
    repo = SysBoxRepository(builtin_store)
    for i in range(25):
        await repo.create_notification(
            _like(clock, target_id=i, created_at=clock.current + timedelta(seconds=i))
        )

    page = await repo.get_notification_list(5, limit=0)
    assert len(page.items) == 20
    assert page.next_cursor

    rest = await repo.get_notification_list(5, limit=0, cursor=page.next_cursor)
    assert len(rest.items) == 5
    assert rest.next_cursor is None
    assert {i.id for i in page.items}.isdisjoint({i.id for i in rest.items})


@pytest.mark.asyncio
async def test_notification_list_cursor_with_clamped_limit(builtin_store, clock, monkeypatch):
    monkeypatch.setattr(settings, "STORE_PAGE_MAX_LIMIT", 10)
    repo = SysBoxRepository(builtin_store)
    for i in range(12):
        await repo.create_notification(
            _like(clock, target_id=i, created_at=clock.current + timedelta(seconds=i))
        )

    page = await repo.get_notification_list(5, limit=500)
    assert len(page.items) == 10
    assert page.next_cursor

    rest = await repo.get_notification_list(5, limit=500, cursor=page.next_cursor)
    assert len(rest.items) == 2
    assert rest.next_cursor is None
