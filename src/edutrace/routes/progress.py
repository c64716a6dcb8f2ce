"""Progress tracking endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from edutrace.auth import get_current_user
from edutrace.clients.data_service import DataServiceClient
from edutrace.db.base import get_db
from edutrace.schemas.progress import (
    ProgressUpdate,
    RoadmapCompletion,
    RoadmapCompletionMap,
    RoadmapCompletionRequest,
    RoadmapProgress,
    UserProgress,
)
from edutrace.services.progress import ProgressService

router = APIRouter()


@router.get("/roadmaps/{roadmap_id}", response_model=RoadmapProgress)
async def get_roadmap_progress(
    roadmap_id: str,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> RoadmapProgress:
    service = ProgressService(db)
    return await service.get_roadmap_progress(str(user_id), roadmap_id)


@router.get("/roadmaps/{roadmap_id}/completion", response_model=RoadmapCompletion)
async def get_roadmap_completion(
    roadmap_id: str,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> RoadmapCompletion:
    service = ProgressService(db)
    is_completed = await service.is_roadmap_completed(str(user_id), roadmap_id)
    return RoadmapCompletion(roadmap_id=roadmap_id, is_completed=is_completed)


@router.post("/roadmaps/completion", response_model=RoadmapCompletionMap)
async def batch_roadmap_completion(
    payload: RoadmapCompletionRequest,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> RoadmapCompletionMap:
    """Completion status for several roadmaps in one call."""
    service = ProgressService(db)
    items = await service.batch_check_roadmap_completion(
        str(user_id), payload.roadmap_ids
    )
    return RoadmapCompletionMap(items=items)


@router.get("/topics/{topic_id}", response_model=UserProgress)
async def get_topic_progress(
    topic_id: str,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> UserProgress:
    service = ProgressService(db)
    progress = await service.get_topic_progress(str(user_id), topic_id)
    if not progress:
        raise HTTPException(status_code=404, detail="No progress recorded")
    return progress


@router.put("/topics", response_model=UserProgress)
async def update_topic_progress(
    payload: ProgressUpdate,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> UserProgress:
    """Record progress on a topic for the authenticated user."""
    service = ProgressService(db)
    return await service.update_topic_progress(str(user_id), payload)
