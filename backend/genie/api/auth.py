"""
Authentication API endpoints.
"""

from fastapi import APIRouter, Depends

from ..models import Profile, TokenData
from ..utils.auth import get_current_user

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get("/me", response_model=Profile)
async def get_me(user: TokenData = Depends(get_current_user)):
    """
    Profile of the authenticated user, taken from the verified token claims.
    """
    return Profile(
        id=user.user_id,
        email=user.email,
        name=user.name,
        avatar_url=user.avatar_url,
    )
