import asyncio

from chatstore.core.celery_app import celery_app
from chatstore.core.database import engine
from chatstore.core.logging import logger
from chatstore.store.message_store import MessageStore


def _build_store() -> MessageStore:
    return MessageStore(engine)


@celery_app.task(name="chatstore.tasks.ttl.purge_expired_records")
def purge_expired_records_task(kind: str | None = None):
    """
    删除 TTL 索引声明的过期记录（SQL 引擎没有原生 TTL 监视器）
    """
    logger.info(f"Running expired records purge kind={kind or '*'}...")

    async def _run() -> dict[str, int]:
        store = _build_store()
        try:
            await store.init()
            return await store.purge_expired(kind)
        finally:
            # 每次 asyncio.run 都是新事件循环，连接不能跨循环复用
            await store.engine.dispose()

    try:
        purged = asyncio.run(_run())
    except Exception as exc:
        logger.error(f"Expired records purge failed: {exc}")
        return f"Failed: {exc}"
    logger.info(f"expired_records_purge_completed purged={purged}")
    return purged
