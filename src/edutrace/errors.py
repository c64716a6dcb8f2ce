"""Error taxonomy shared by validators, the service adapter and routes."""

import math
from enum import Enum
from typing import Any, Dict, Optional


class EduTraceError(Exception):
    """Base class for errors raised by this package."""

    code = "ERROR"
    status_code = 500

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Render in the standard error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": str(self),
                "details": self.details(),
            }
        }


class InputValidationError(EduTraceError, ValueError):
    """A caller-supplied value failed validation."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"field": self.field}


class RateLimitExceeded(EduTraceError):
    """Too many requests for one identifier inside the current window."""

    code = "RATE_LIMITED"
    status_code = 429

    def __init__(self, retry_after: float):
        self.retry_after = max(0, math.ceil(retry_after))
        super().__init__(
            f"Rate limit exceeded. Try again in {self.retry_after} seconds"
        )

    def details(self) -> Dict[str, Any]:
        return {"retry_after": self.retry_after}


class ErrorKind(str, Enum):
    """Closed set of failure kinds reported by the data service adapter."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    INVALID = "invalid"
    TRANSIENT = "transient"
    UNAVAILABLE = "unavailable"
    FAILURE = "failure"


_KIND_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INVALID: 400,
    ErrorKind.TRANSIENT: 503,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.FAILURE: 502,
}


class DataServiceError(EduTraceError):
    """Failure reported by the external data service."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.service_code = code
        self.service_status = status_code
        super().__init__(message)

    @property
    def code(self) -> str:  # type: ignore[override]
        return self.kind.name

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return _KIND_STATUS[self.kind]

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    def details(self) -> Dict[str, Any]:
        return {"service_code": self.service_code} if self.service_code else {}
