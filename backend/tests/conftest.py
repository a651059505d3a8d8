"""
测试全局配置

- 使用内存 SQLite (aiosqlite) 运行真实存储逻辑，不连接 PostgreSQL
- 禁用 Celery broker 与日志队列，避免进程退出卡住
- FakeClock 控制存储时钟，用于 TTL 相关用例
"""
from __future__ import annotations

import os
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio

# 确保 backend/ 在 sys.path，便于导入 chatstore.*
BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

# 必须在导入 chatstore 之前设置
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("LOG_ASYNC", "false")
os.environ.setdefault("LOG_FILE_PATH", "")

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from chatstore.kinds import ensure_builtin_kinds
from chatstore.store import MessageStore

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def store(engine, clock) -> MessageStore:
    store = MessageStore(engine, clock=clock)
    await store.init()
    return store


@pytest_asyncio.fixture()
async def builtin_store(store) -> MessageStore:
    await ensure_builtin_kinds(store)
    return store
