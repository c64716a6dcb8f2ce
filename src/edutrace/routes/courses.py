"""Course catalogue endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from edutrace.clients.data_service import DataServiceClient
from edutrace.db.base import get_db
from edutrace.schemas.content import CourseFilters, CourseList, CourseWithRoadmaps
from edutrace.services.content import ContentService

router = APIRouter()


@router.get("", response_model=CourseList)
async def list_courses(
    category: Optional[str] = Query(None, max_length=100),
    difficulty_level: Optional[str] = Query(
        None, pattern="^(beginner|intermediate|advanced)$"
    ),
    search: Optional[str] = Query(None),
    db: DataServiceClient = Depends(get_db),
) -> CourseList:
    """List published courses with optional filtering."""
    service = ContentService(db)
    courses = await service.list_courses(
        CourseFilters(
            category=category, difficulty_level=difficulty_level, search=search
        )
    )
    return CourseList(items=courses)


@router.get("/{slug}", response_model=CourseWithRoadmaps)
async def get_course(
    slug: str,
    db: DataServiceClient = Depends(get_db),
) -> CourseWithRoadmaps:
    """Get a course and its roadmaps by slug."""
    service = ContentService(db)
    course = await service.get_course_with_roadmaps(slug)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course
