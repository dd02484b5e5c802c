"""
Mock Assistant - canned keyword-matched replies standing in for real inference.
"""

import asyncio
import logging
from typing import Optional, List, Tuple

logger = logging.getLogger(__name__)

# (keywords, reply) - checked in order, first match wins
RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("hello", "hi"), "Hello! How can I help you today?"),
    (("help",), "I'm here to help! What would you like to know or discuss?"),
    (
        ("code", "programming"),
        "I can help you with programming questions! What language or problem are you working on?",
    ),
    (("project",), "Great! I'd love to help you with your project. What are you working on?"),
]


class MockAssistant:
    """
    Placeholder responder.
    Matches keywords as plain substrings, so "this" also counts as "hi".
    """

    def __init__(self, model: str = "llama3.2", delay: float = 0.0):
        self.model = model
        self.delay = delay

    def reply_for(self, message: str) -> str:
        """Pick the canned reply for a message."""
        lowered = message.lower()
        for keywords, reply in RULES:
            if any(keyword in lowered for keyword in keywords):
                return reply
        return (
            f'That\'s an interesting question about "{message}". '
            "I'm here to help you explore this topic further. "
            "What specific aspect would you like to discuss?"
        )

    async def respond(self, message: str, model: Optional[str] = None) -> dict:
        """
        Produce a reply in the shape the chat client expects.

        Returns:
            Dict with ``response``, ``model`` and ``done``
        """
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        response = self.reply_for(message)
        logger.debug(f"Mock assistant reply: model={model or self.model}, chars={len(response)}")
        return {"response": response, "model": model or self.model, "done": True}
