"""Models module."""

from .thread import Thread, ThreadCreate, ThreadEnvelope, ThreadListEnvelope, PLACEHOLDER_PREFIX
from .message import Message, MessageCreate, MessageEnvelope, MessageListEnvelope, MessageRole
from .user import TokenData, Profile
from .assistant import AssistantRequest, AssistantReply

__all__ = [
    'Thread', 'ThreadCreate', 'ThreadEnvelope', 'ThreadListEnvelope', 'PLACEHOLDER_PREFIX',
    'Message', 'MessageCreate', 'MessageEnvelope', 'MessageListEnvelope', 'MessageRole',
    'TokenData', 'Profile',
    'AssistantRequest', 'AssistantReply'
]
