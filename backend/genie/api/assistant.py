"""
Assistant API endpoint - placeholder replies until a real model is wired in.
"""

from fastapi import APIRouter

from ..agents import MockAssistant
from ..config import settings
from ..core.exceptions import ValidationError
from ..models import AssistantRequest, AssistantReply

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


def _get_assistant() -> MockAssistant:
    return MockAssistant(
        model=settings.assistant_default_model,
        delay=settings.assistant_response_delay,
    )


@router.post("", response_model=AssistantReply)
async def reply(request: AssistantRequest):
    """
    Answer a user message.

    Raises:
        ValidationError: If the message is missing
    """
    if not request.message:
        raise ValidationError("Message is required")

    result = await _get_assistant().respond(request.message, model=request.model)
    return AssistantReply(**result)
