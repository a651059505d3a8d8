from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from chatstore.core.config import settings


def build_engine(db_url: str | None = None, **overrides) -> AsyncEngine:
    """
    根据 DATABASE_URL 创建异步引擎
    """
    url = db_url or settings.DATABASE_URL
    engine_kwargs = {
        "echo": settings.DEBUG,
        "future": True,
        "pool_pre_ping": True,
    }
    # 连接池配置（仅非 sqlite 场景启用）
    if not url.startswith("sqlite"):
        engine_kwargs.update(pool_size=20, max_overflow=10)
    engine_kwargs.update(overrides)
    return create_async_engine(url, **engine_kwargs)


# 进程级默认引擎（Celery 任务等使用）
engine = build_engine()
