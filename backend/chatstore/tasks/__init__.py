from .ttl import purge_expired_records_task

__all__ = ["purge_expired_records_task"]
