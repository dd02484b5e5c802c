"""
Chat Client - messages of a thread and the placeholder assistant.
"""

import logging
from typing import List, Optional, Tuple

from ..models import AssistantReply, Message, MessageEnvelope, MessageListEnvelope, MessageRole
from .base import ApiClient
from .session import Credential
from .thread_client import parse_envelope

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/api/chat/messages"
ASSISTANT_PATH = "/api/assistant"


class ChatClient(ApiClient):
    """Client for the message and assistant endpoints."""

    async def list_messages(self, credential: Credential, thread_id: str) -> List[Message]:
        response = await self._request("GET", MESSAGES_PATH, credential, params={"threadId": thread_id})
        return parse_envelope(response, MessageListEnvelope).messages

    async def post_message(
        self,
        credential: Credential,
        thread_id: str,
        role: MessageRole,
        content: str
    ) -> Message:
        response = await self._request(
            "POST",
            MESSAGES_PATH,
            credential,
            json={"threadId": thread_id, "role": role, "content": content},
        )
        return parse_envelope(response, MessageEnvelope).message

    async def ask_assistant(self, message: str, model: Optional[str] = None) -> AssistantReply:
        """Ask the assistant; the endpoint does not need a credential."""
        body = {"message": message}
        if model:
            body["model"] = model
        response = await self._request("POST", ASSISTANT_PATH, require_auth=False, json=body)
        return parse_envelope(response, AssistantReply)

    async def send(
        self,
        credential: Credential,
        thread_id: str,
        content: str,
        model: Optional[str] = None
    ) -> Tuple[Message, Message]:
        """
        One exchange: store the user's message, get a reply, store the reply.

        Returns:
            (user message, assistant message)
        """
        user_message = await self.post_message(credential, thread_id, "user", content)
        reply = await self.ask_assistant(content, model=model)
        assistant_message = await self.post_message(credential, thread_id, "assistant", reply.response)
        logger.debug(f"Exchange stored in thread {thread_id} (model={reply.model})")
        return user_message, assistant_message
