"""
Authentication utilities - verification of the OAuth provider's bearer JWTs.

Sign-in, refresh and session storage belong to the provider; the backend only
checks the signature, expiry and (optionally) audience of the access token.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..core.exceptions import AuthError
from ..models import TokenData

# auto_error=False so a missing header becomes our 401 instead of Starlette's 403
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Mint an access token signed like the provider's (local development and tests).

    Args:
        data: Claims to encode, at least ``sub``
        expires_delta: Optional lifetime, defaults to ``access_token_expire_minutes``

    Returns:
        str: Encoded JWT
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    if settings.jwt_audience and "aud" not in to_encode:
        to_encode["aud"] = settings.jwt_audience
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Verify a bearer token.

    Returns:
        Optional[TokenData]: Token data if valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    metadata = payload.get("user_metadata") or {}
    return TokenData(
        user_id=str(user_id),
        email=payload.get("email"),
        name=metadata.get("full_name") or metadata.get("name"),
        avatar_url=metadata.get("avatar_url"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenData:
    """
    Dependency returning the verified token payload.

    Raises:
        AuthError: If the header is missing or the token is invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Unauthorized")

    token_data = decode_access_token(credentials.credentials)
    if token_data is None:
        raise AuthError("Could not validate credentials")
    return token_data


async def get_current_user_id(user: TokenData = Depends(get_current_user)) -> str:
    """Dependency returning only the authenticated user id."""
    return user.user_id
