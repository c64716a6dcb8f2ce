"""Roadmap and topic endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from edutrace.auth import get_optional_user
from edutrace.clients.data_service import DataServiceClient
from edutrace.db.base import get_db
from edutrace.schemas.content import RoadmapWithTopics
from edutrace.schemas.progress import TopicWithProgress
from edutrace.services.content import ContentService

router = APIRouter()


@router.get("/{slug}", response_model=RoadmapWithTopics)
async def get_roadmap(
    slug: str,
    db: DataServiceClient = Depends(get_db),
) -> RoadmapWithTopics:
    """Get a roadmap with its course and ordered topics."""
    service = ContentService(db)
    roadmap = await service.get_roadmap_with_topics(slug)
    if not roadmap:
        raise HTTPException(status_code=404, detail="Roadmap not found")
    return roadmap


@router.get("/{slug}/topics/{topic_slug}", response_model=TopicWithProgress)
async def get_topic(
    slug: str,
    topic_slug: str,
    db: DataServiceClient = Depends(get_db),
    user_id: Optional[UUID] = Depends(get_optional_user),
) -> TopicWithProgress:
    """Get a topic; signed-in callers also get their progress on it."""
    service = ContentService(db)
    topic = await service.get_topic_by_slug(
        slug, topic_slug, str(user_id) if user_id else None
    )
    if not topic:
        raise HTTPException(status_code=404, detail="Topic not found")
    return topic
