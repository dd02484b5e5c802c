"""
User Models - identity derived from the OAuth provider's bearer token.
"""

from typing import Optional
from pydantic import BaseModel, EmailStr


class TokenData(BaseModel):
    """Verified token payload."""
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Profile(BaseModel):
    """Public profile of the authenticated user."""
    id: str
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
