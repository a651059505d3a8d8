import logging

from chatstore.core.config import settings
from chatstore.core.logging import library_log_levels, setup_logging


def test_setup_logging_quiets_store_libraries(monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", False)
    setup_logging()

    assert logging.getLogger("alembic.runtime.migration").level == logging.WARNING
    assert logging.getLogger("aiosqlite").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_sql_echo_kept_in_debug(monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", True)
    levels = library_log_levels()
    assert levels["sqlalchemy.engine"] == logging.INFO
    assert levels["alembic.runtime.migration"] == logging.WARNING
