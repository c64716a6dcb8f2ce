"""Auth API client for the OAuth/PKCE code exchange."""

from typing import Any, Dict, Optional

import httpx

from edutrace.clients.data_service import error_from_response
from edutrace.config import Settings, get_settings
from edutrace.errors import DataServiceError, ErrorKind


class AuthClient:
    """Client for the hosted auth service."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = f"{self.settings.supabase_url.rstrip('/')}/auth/v1"
        self.timeout = httpx.Timeout(self.settings.request_timeout)
        self._transport = transport

    async def exchange_code_for_session(
        self, code: str, code_verifier: Optional[str] = None
    ) -> Dict[str, Any]:
        """Trade an authorization code for a session (access + refresh token)."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/token",
                    params={"grant_type": "pkce"},
                    json={"auth_code": code, "code_verifier": code_verifier or ""},
                    headers=self._get_headers(),
                )
        except httpx.TransportError as exc:
            raise DataServiceError(
                ErrorKind.TRANSIENT, f"Auth service unreachable: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DataServiceError(
                ErrorKind.FAILURE, f"Auth service request failed: {exc}"
            ) from exc

        if response.is_error:
            raise error_from_response(response)
        try:
            session = response.json()
        except ValueError as exc:
            raise DataServiceError(
                ErrorKind.FAILURE, "Auth service returned a non-JSON body"
            ) from exc
        if not isinstance(session, dict) or not session.get("access_token"):
            raise DataServiceError(
                ErrorKind.UNAUTHORIZED, "Auth service returned no access token"
            )
        return session

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API calls."""
        return {
            "apikey": self.settings.supabase_anon_key,
            "Content-Type": "application/json",
        }
