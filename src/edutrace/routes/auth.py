"""OAuth callback endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from edutrace.clients.auth_api import AuthClient
from edutrace.config import get_settings
from edutrace.errors import DataServiceError
from edutrace.redirects import validate_redirect_path

logger = logging.getLogger(__name__)

router = APIRouter()


def get_auth_client() -> AuthClient:
    return AuthClient()


@router.get("/callback")
async def auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    next_path: Optional[str] = Query(None, alias="next"),
    auth_client: AuthClient = Depends(get_auth_client),
) -> RedirectResponse:
    """Finish an OAuth sign-in and send the user back into the app."""
    settings = get_settings()
    origin = f"{request.url.scheme}://{request.url.netloc}"
    target = validate_redirect_path(
        next_path or settings.default_redirect_path,
        origin,
        default=settings.default_redirect_path,
    )

    if code:
        verifier = request.cookies.get(settings.code_verifier_cookie_name)
        try:
            session = await auth_client.exchange_code_for_session(code, verifier)
        except DataServiceError as exc:
            logger.warning("Auth code exchange failed: %s", exc)
        else:
            response = RedirectResponse(f"{origin}{target}")
            secure = request.url.scheme == "https"
            response.set_cookie(
                settings.session_cookie_name,
                session["access_token"],
                max_age=session.get("expires_in"),
                path="/",
                secure=secure,
                httponly=True,
                samesite="lax",
            )
            if session.get("refresh_token"):
                response.set_cookie(
                    settings.refresh_cookie_name,
                    session["refresh_token"],
                    path="/",
                    secure=secure,
                    httponly=True,
                    samesite="lax",
                )
            response.delete_cookie(settings.code_verifier_cookie_name, path="/")
            return response

    # Return the user to an error page with instructions
    return RedirectResponse(f"{origin}{settings.auth_error_path}")
