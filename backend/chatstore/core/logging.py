import logging
import sys

from loguru import logger

from chatstore.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[service]} | {name}:{function}:{line} - {message}"


def library_log_levels() -> dict[str, int]:
    """
    第三方库日志级别

    - alembic 每次在线加列都会以 INFO 输出 "Context impl ..."
    - aiosqlite 在 DEBUG 下逐条输出线程调度日志
    - SQL 回显与连接池日志只在调试模式下保留
    """
    sql_level = logging.INFO if settings.DEBUG else logging.WARNING
    return {
        "sqlalchemy.engine": sql_level,
        "sqlalchemy.pool": sql_level,
        "alembic.runtime.migration": logging.WARNING,
        "aiosqlite": logging.WARNING,
        "asyncpg": logging.WARNING,
        "celery": logging.INFO,
        "celery.beat": logging.INFO,
        "kombu": logging.WARNING,
    }


class InterceptHandler(logging.Handler):
    """
    标准库 logging (SQLAlchemy / alembic / Celery) 转发到 Loguru
    """
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 跳过 logging 模块自身的栈帧，定位真实调用方
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging():
    """
    配置 Loguru：控制台 + 可选文件，统一接管标准库日志。
    存储进程、Celery worker 与 beat 启动时各调用一次。
    """
    logger.remove()
    logger.configure(extra={"service": settings.PROJECT_NAME})

    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format=CONSOLE_FORMAT,
        serialize=settings.LOG_JSON_FORMAT,
        enqueue=settings.LOG_ASYNC,  # 测试环境关闭队列以规避 semlock 权限问题
        backtrace=True,
        diagnose=settings.DEBUG,
    )

    if settings.LOG_FILE_PATH:
        logger.add(
            settings.LOG_FILE_PATH,
            rotation=settings.LOG_ROTATION,
            retention=settings.LOG_RETENTION,
            level=settings.LOG_LEVEL,
            format=FILE_FORMAT,
            encoding="utf-8",
            enqueue=settings.LOG_ASYNC,
            compression="zip",
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, level in library_log_levels().items():
        logging.getLogger(name).setLevel(level)
    logging.getLogger("root").setLevel(settings.LOG_LEVEL)

    return logger
