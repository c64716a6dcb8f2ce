"""Data service client lifecycle and request-scoped access."""

from typing import Optional

from fastapi import Request

from edutrace.clients.data_service import DataServiceClient

# Global client; holds the shared retry policy and circuit breaker
client: Optional[DataServiceClient] = None


async def init_db() -> None:
    """Initialize the data service client."""
    global client

    client = DataServiceClient()


async def close_db() -> None:
    """Drop the data service client."""
    global client

    client = None


async def get_db(request: Request) -> DataServiceClient:
    """Get a data service client acting as the caller, for dependency injection."""
    if client is None:
        await init_db()

    assert client is not None

    return client.with_access_token(getattr(request.state, "access_token", None))
