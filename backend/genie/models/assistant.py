"""
Assistant Models - request/response of the placeholder responder.
"""

from typing import Optional
from pydantic import BaseModel


class AssistantRequest(BaseModel):
    message: Optional[str] = None
    model: Optional[str] = None


class AssistantReply(BaseModel):
    response: str
    model: str
    done: bool = True
