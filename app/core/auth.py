"""Authentication dependencies for FastAPI routes.

Every authenticated route receives an explicit ``UserSession`` built from
the verified bearer token; services take that session as an argument
rather than reading ambient state.
"""

from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.jwt import jwt_verifier
from app.schemas.auth import UserSession
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

security = HTTPBearer(auto_error=False)


async def authenticate_token(token: str) -> UserSession:
    """Verify an access token and build the caller's session.

    Raises:
        jwt.InvalidTokenError: If the token fails verification or has a non-UUID subject
    """
    claims = await jwt_verifier.verify_token(token)
    try:
        user_id = UUID(claims.sub)
    except ValueError as e:
        raise jwt.InvalidTokenError(f"Token subject is not a user id: {claims.sub}") from e

    return UserSession(
        user_id=user_id,
        email=claims.email or None,
        role=claims.role or "authenticated",
        access_token=token,
        app_metadata=claims.app_metadata,
        user_metadata=claims.user_metadata,
    )


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[UserSession]:
    """Session for the bearer token, or None when missing or invalid."""
    if not credentials:
        return None
    try:
        return await authenticate_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Invalid token: {e}")
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> UserSession:
    """Get the authenticated caller's session from the JWT bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or expired
    """
    if not credentials:
        LOGGER.warning("No authorization credentials provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        session = await authenticate_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    LOGGER.debug(f"Authenticated user: {session.user_id}")
    return session


async def require_admin(user: UserSession = Depends(get_current_user)) -> UserSession:
    """Allow only admins, by JWT role or ``app_metadata.role``."""
    if not user.is_admin:
        LOGGER.warning(f"Access denied for user {user.user_id}: admin role required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Required role: admin",
        )
    return user
