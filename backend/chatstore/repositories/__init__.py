from .agent_message_repository import AgentMessageRepository
from .base import BaseRepository
from .message_repository import MessageRepository
from .sys_box_repository import SysBoxRepository

__all__ = [
    "AgentMessageRepository",
    "BaseRepository",
    "MessageRepository",
    "SysBoxRepository",
]
