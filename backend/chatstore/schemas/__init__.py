from .agent_message import AgentMessage, AgentMessageCreate
from .base import BaseSchema, CursorPage
from .message import Message, MessageCreate, MessagePayload
from .sys_box import SysBoxCreate, SysBoxItem

__all__ = [
    "AgentMessage",
    "AgentMessageCreate",
    "BaseSchema",
    "CursorPage",
    "Message",
    "MessageCreate",
    "MessagePayload",
    "SysBoxCreate",
    "SysBoxItem",
]
