"""Client for the hosted Postgres REST/RPC API.

All failures leave this module as ``DataServiceError`` with an
``ErrorKind``; callers never look at raw HTTP statuses or PostgREST codes.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from edutrace.config import Settings, get_settings
from edutrace.errors import DataServiceError, ErrorKind
from edutrace.resilience import CircuitBreaker, RetryPolicy

# PostgREST: zero (or several) rows for a single-object request
NO_ROWS_CODE = "PGRST116"

_SINGLE_OBJECT = "application/vnd.pgrst.object+json"

_CODE_KINDS = {
    NO_ROWS_CODE: ErrorKind.NOT_FOUND,
    "23505": ErrorKind.CONFLICT,  # unique_violation
    "23503": ErrorKind.CONFLICT,  # foreign_key_violation
    "42501": ErrorKind.UNAUTHORIZED,  # insufficient_privilege
    "PGRST301": ErrorKind.UNAUTHORIZED,  # JWT rejected
    "22P02": ErrorKind.INVALID,  # invalid_text_representation
    "PGRST100": ErrorKind.INVALID,  # unparsable query
}

_TRANSIENT_STATUSES = {408, 429, 502, 503, 504}


def classify_error(status_code: int, code: Optional[str]) -> ErrorKind:
    """Map a PostgREST error response onto an ``ErrorKind``."""
    if code in _CODE_KINDS:
        return _CODE_KINDS[code]
    if status_code in _TRANSIENT_STATUSES:
        return ErrorKind.TRANSIENT
    if status_code in (401, 403):
        return ErrorKind.UNAUTHORIZED
    if status_code == 409:
        return ErrorKind.CONFLICT
    if 400 <= status_code < 500:
        return ErrorKind.INVALID
    return ErrorKind.FAILURE


def error_from_response(response: httpx.Response) -> DataServiceError:
    code = None
    message = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = body.get("code") or body.get("error_code")
        message = (
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or message
        )
    return DataServiceError(
        classify_error(response.status_code, code),
        message,
        code=code,
        status_code=response.status_code,
    )


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _quote(value: Any) -> str:
    """Quote a value for use inside PostgREST list/logic filters."""
    text = _format_value(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


class Query:
    """Builder for one table request, modelled on the PostgREST query syntax."""

    def __init__(self, client: "DataServiceClient", table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._params: List[Tuple[str, str]] = []
        self._headers: Dict[str, str] = {}
        self._body: Any = None

    def select(self, columns: str = "*") -> "Query":
        compact = "".join(columns.split())
        self._params.append(("select", compact))
        return self

    def eq(self, column: str, value: Any) -> "Query":
        op = "is" if value is None else "eq"
        self._params.append((column, f"{op}.{_format_value(value)}"))
        return self

    def ilike_any(self, columns: Sequence[str], pattern: str) -> "Query":
        """Match ``*pattern*`` case-insensitively against any of ``columns``."""
        conditions = ",".join(
            f"{column}.ilike.{_quote(f'*{pattern}*')}" for column in columns
        )
        self._params.append(("or", f"({conditions})"))
        return self

    def order(self, column: str, desc: bool = False) -> "Query":
        self._params.append(("order", f"{column}.{'desc' if desc else 'asc'}"))
        return self

    def limit(self, count: int) -> "Query":
        self._params.append(("limit", str(count)))
        return self

    def insert(self, row: Dict[str, Any]) -> "Query":
        self._method = "POST"
        self._body = row
        self._headers["Prefer"] = "return=representation"
        return self

    def upsert(self, row: Dict[str, Any], on_conflict: str) -> "Query":
        self._method = "POST"
        self._body = row
        self._params.append(("on_conflict", on_conflict))
        self._headers["Prefer"] = "resolution=merge-duplicates,return=representation"
        return self

    async def all(self) -> List[Dict[str, Any]]:
        """Execute and return every matching row."""
        data = await self._execute()
        return list(data or [])

    async def one(self) -> Dict[str, Any]:
        """Execute expecting exactly one row; raises NOT_FOUND otherwise."""
        self._headers["Accept"] = _SINGLE_OBJECT
        return await self._execute()

    async def one_or_none(self) -> Optional[Dict[str, Any]]:
        try:
            return await self.one()
        except DataServiceError as exc:
            if exc.is_not_found:
                return None
            raise

    async def _execute(self) -> Any:
        return await self._client.request(
            self._method,
            self._table,
            params=self._params,
            json=self._body,
            headers=self._headers,
        )


class DataServiceClient:
    """Client for the table and RPC endpoints of the data service."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        access_token: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = f"{self.settings.supabase_url.rstrip('/')}/rest/v1"
        self.timeout = httpx.Timeout(self.settings.request_timeout)
        self.access_token = access_token
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
            max_delay=self.settings.retry_max_delay,
        )
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            name="data-service",
            failure_threshold=self.settings.circuit_failure_threshold,
            recovery_timeout=self.settings.circuit_recovery_timeout,
        )
        self._transport = transport

    def with_access_token(self, access_token: Optional[str]) -> "DataServiceClient":
        """Return a client acting as the given user, sharing retry/circuit state."""
        return DataServiceClient(
            settings=self.settings,
            access_token=access_token,
            retry_policy=self.retry_policy,
            circuit_breaker=self.circuit_breaker,
            transport=self._transport,
        )

    def table(self, name: str) -> Query:
        return Query(self, name)

    async def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        """Call a named remote procedure."""
        return await self.request("POST", f"rpc/{function}", json=params)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        async def send() -> Any:
            return await self._send(method, path, params, json, headers)

        return await self.retry_policy.run(lambda: self.circuit_breaker.call(send))

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Sequence[Tuple[str, str]]],
        json: Any,
        headers: Optional[Dict[str, str]],
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}/{path}",
                    params=list(params or []),
                    json=json,
                    headers={**self._get_headers(), **(headers or {})},
                )
        except httpx.TimeoutException as exc:
            raise DataServiceError(
                ErrorKind.TRANSIENT, f"Data service timed out: {exc}"
            ) from exc
        except httpx.TransportError as exc:
            raise DataServiceError(
                ErrorKind.TRANSIENT, f"Data service unreachable: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DataServiceError(
                ErrorKind.FAILURE, f"Data service request failed: {exc}"
            ) from exc

        if response.is_error:
            raise error_from_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DataServiceError(
                ErrorKind.FAILURE,
                "Data service returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API calls."""
        return {
            "apikey": self.settings.supabase_anon_key,
            "Authorization": f"Bearer {self.access_token or self.settings.supabase_anon_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
