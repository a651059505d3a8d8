from __future__ import annotations

from celery import Celery
from celery.signals import beat_init, worker_process_init

from chatstore.core.config import settings
from chatstore.core.logging import setup_logging

celery_app = Celery(
    "chatstore",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_default_queue=settings.CELERY_TASK_DEFAULT_QUEUE,
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # 定时任务配置
    beat_schedule={
        # 过期记录清理（SQL 引擎没有原生 TTL 索引）
        "purge-expired-records": {
            "task": "chatstore.tasks.ttl.purge_expired_records",
            "schedule": settings.STORE_TTL_SWEEP_INTERVAL_SECONDS,
            "options": {"expires": settings.STORE_TTL_SWEEP_INTERVAL_SECONDS},
        },
    },
    task_routes={
        "chatstore.tasks.ttl.*": {"queue": "internal"},
        "*": {"queue": "default"},
    },
)

# 自动发现 chatstore.tasks 下的任务
celery_app.autodiscover_tasks(["chatstore"])


@worker_process_init.connect
def init_worker_logging(**kwargs):
    """
    在 Celery worker 进程初始化时配置日志。
    """
    setup_logging()


@beat_init.connect
def init_beat_logging(**kwargs):
    """
    在 Celery beat 进程初始化时配置日志。
    """
    setup_logging()
