import uuid
from datetime import timedelta

import pytest
from pydantic import ValidationError

from chatstore.repositories import AgentMessageRepository
from chatstore.schemas import AgentMessageCreate

AGENT = 0
USER = 1001


@pytest.mark.asyncio
async def test_history_returned_oldest_first(builtin_store, clock):
    repo = AgentMessageRepository(builtin_store)
    conversation_id = str(uuid.uuid4())

    for i, sender in enumerate([USER, AGENT, USER, AGENT]):
        clock.advance(seconds=1)
        await repo.save_message(
            AgentMessageCreate(conversation_id=conversation_id, sender_id=sender, content=f"turn {i}")
        )

    history = await repo.get_history(conversation_id, limit=3)
    assert [m.content for m in history] == ["turn 1", "turn 2", "turn 3"]
    assert history[-1].created_at == clock.current

    # 大写 UUID 归一化后命中同一会话
    assert len(await repo.get_history(conversation_id.upper(), limit=10)) == 4


@pytest.mark.asyncio
async def test_agent_messages_expire_after_thirty_days(builtin_store, clock):
    repo = AgentMessageRepository(builtin_store)
    conversation_id = str(uuid.uuid4())
    msg_id = await repo.save_message(
        AgentMessageCreate(conversation_id=conversation_id, sender_id=USER, content="hi")
    )

    clock.advance(days=29)
    assert [m.id for m in await repo.get_history(conversation_id)] == [msg_id]

    clock.advance(days=2)
    assert await repo.get_history(conversation_id) == []
    assert await repo.get(msg_id) is None
    assert await builtin_store.purge_expired() == {"agent_messages": 1}


def test_conversation_id_must_be_uuid():
    with pytest.raises(ValidationError):
        AgentMessageCreate(conversation_id="not-a-uuid", sender_id=USER, content="hi")
