"""Content search endpoint."""

from fastapi import APIRouter, Depends, Query

from edutrace.clients.data_service import DataServiceClient
from edutrace.db.base import get_db
from edutrace.schemas.content import SearchResults
from edutrace.services.content import ContentService

router = APIRouter()


@router.get("", response_model=SearchResults)
async def search_content(
    q: str = Query(...),
    db: DataServiceClient = Depends(get_db),
) -> SearchResults:
    """Search published courses, roadmaps and topics."""
    service = ContentService(db)
    return await service.search_content(q)
