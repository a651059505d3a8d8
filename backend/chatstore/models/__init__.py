from .base import Base, JSONCompat, TimestampMixin, UTCDateTime
from .catalog import EntityKindCatalog, IndexCatalog

__all__ = [
    "Base",
    "EntityKindCatalog",
    "IndexCatalog",
    "JSONCompat",
    "TimestampMixin",
    "UTCDateTime",
]
