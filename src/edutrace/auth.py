"""JWT authentication for backend-issued access tokens."""

from typing import Optional
from uuid import UUID

import jwt
from fastapi import HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from edutrace.config import get_settings

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    """Verify an access token and return its claims.

    Without a configured secret no token can be verified, so every token is
    rejected.
    """
    settings = get_settings()
    if not settings.supabase_jwt_secret:
        raise jwt.InvalidTokenError("JWT secret is not configured")
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> UUID:
    """Extract and validate user ID from JWT token."""
    # Prefer user ID from middleware if available
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        try:
            return UUID(str(user_id))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid user ID format",
            )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing user ID",
            )
        request.state.access_token = credentials.credentials
        return UUID(user_id)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
        )
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format",
        )


async def get_optional_user(request: Request) -> Optional[UUID]:
    """User ID set by ``AuthMiddleware``, or ``None`` for anonymous calls."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        return None
    try:
        return UUID(str(user_id))
    except ValueError:
        return None
