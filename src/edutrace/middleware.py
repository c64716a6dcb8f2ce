"""Custom middleware for request handling."""

import uuid
from typing import Awaitable, Callable

import jwt
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from edutrace.auth import decode_access_token
from edutrace.config import get_settings
from edutrace.errors import RateLimitExceeded
from edutrace.ratelimit import get_rate_limiter


class AuthMiddleware(BaseHTTPMiddleware):
    """Extract user ID from JWT and attach to request state."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        auth = request.headers.get("Authorization")
        if auth and auth.startswith("Bearer "):
            token = auth.split(" ", 1)[1]
            try:
                payload = decode_access_token(token)
                user_id = payload.get("sub")
                if not user_id:
                    return JSONResponse(
                        status_code=status.HTTP_401_UNAUTHORIZED,
                        content={"detail": "Invalid token: missing user ID"},
                    )
                request.state.user_id = user_id
                request.state.access_token = token
            except jwt.ExpiredSignatureError:
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content={"detail": "Token has expired"},
                )
            except jwt.InvalidTokenError as exc:
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content={"detail": f"Invalid token: {exc}"},
                )
        return await call_next(request)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID to each request."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-user request limit backed by the shared rate limiter."""

    def __init__(self, app):
        super().__init__(app)
        self.settings = get_settings()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Skip rate limiting for health checks
        if request.url.path == "/health":
            return await call_next(request)

        # Get user ID from request state set by AuthMiddleware
        user_id = getattr(request.state, "user_id", None)
        if not user_id:
            user_id = request.client.host if request.client else "anonymous"

        try:
            await get_rate_limiter().hit(
                f"requests_{user_id}",
                self.settings.rate_limit_requests,
                self.settings.rate_limit_window,
            )
        except RateLimitExceeded as exc:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=exc.to_dict(),
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
