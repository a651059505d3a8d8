from __future__ import annotations

from chatstore.core.logging import logger
from chatstore.store.message_store import MessageStore

from .agent_messages import AGENT_MESSAGES, AGENT_MESSAGES_KIND
from .base import IndexDeclaration, KindDefinition
from .messages import MESSAGES, MESSAGES_KIND, MsgType
from .sys_box import NO_TARGET_ID, SYS_BOX, SYS_BOX_KIND, SYSTEM_SENDER_ID, NotifyType

BUILTIN_KINDS: tuple[KindDefinition, ...] = (MESSAGES, SYS_BOX, AGENT_MESSAGES)


async def ensure_kind(store: MessageStore, definition: KindDefinition) -> None:
    """定义 schema、构建索引并下线遗留索引；重复执行无副作用"""
    await store.define_schema(
        definition.kind,
        definition.schema,
        enforcement=definition.enforcement,
    )
    for declaration in definition.indexes:
        await store.create_index(definition.kind, declaration.keys, **declaration.options())

    existing = {spec.name for spec in store.list_indexes(definition.kind)}
    for legacy_name in definition.legacy_indexes:
        if legacy_name in existing:
            await store.drop_index(definition.kind, legacy_name)
            logger.info(f"legacy_index_retired kind={definition.kind} name={legacy_name}")


async def ensure_builtin_kinds(store: MessageStore) -> None:
    for definition in BUILTIN_KINDS:
        await ensure_kind(store, definition)


__all__ = [
    "AGENT_MESSAGES",
    "AGENT_MESSAGES_KIND",
    "BUILTIN_KINDS",
    "MESSAGES",
    "MESSAGES_KIND",
    "NO_TARGET_ID",
    "SYSTEM_SENDER_ID",
    "SYS_BOX",
    "SYS_BOX_KIND",
    "IndexDeclaration",
    "KindDefinition",
    "MsgType",
    "NotifyType",
    "ensure_builtin_kinds",
    "ensure_kind",
]
