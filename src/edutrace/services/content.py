"""Course, roadmap and topic lookups."""

import asyncio
from typing import Any, List, Mapping, Optional, Union

from edutrace.clients.data_service import DataServiceClient
from edutrace.schemas.content import (
    Course,
    CourseFilters,
    CourseWithRoadmaps,
    Roadmap,
    RoadmapWithTopics,
    SearchResults,
)
from edutrace.schemas.progress import TopicWithProgress, UserProgress
from edutrace.validators import (
    parse_request,
    sanitize_search_query,
    validate_slug,
    validate_uuid,
)

SEARCH_COURSE_LIMIT = 5
SEARCH_ROADMAP_LIMIT = 5
SEARCH_TOPIC_LIMIT = 10


class ContentService:
    """Read-only access to published learning content."""

    def __init__(self, client: DataServiceClient):
        self.client = client

    async def list_courses(
        self, filters: Optional[Union[CourseFilters, Mapping[str, Any]]] = None
    ) -> List[Course]:
        """List published courses ordered by title."""
        criteria = parse_request(CourseFilters, filters or {})

        query = self.client.table("courses").select("*").eq("is_published", True)
        if criteria.category:
            query = query.eq("category", criteria.category)
        if criteria.difficulty_level:
            query = query.eq("difficulty_level", criteria.difficulty_level)
        if criteria.search is not None:
            pattern = sanitize_search_query(criteria.search)
            if pattern is None:
                return []
            query = query.ilike_any(["title", "description"], pattern)

        rows = await query.order("title").all()
        return [Course.model_validate(row) for row in rows]

    async def get_course_by_slug(self, slug: str) -> Optional[Course]:
        validate_slug(slug)
        row = await (
            self.client.table("courses")
            .select("*")
            .eq("slug", slug)
            .eq("is_published", True)
            .one_or_none()
        )
        return Course.model_validate(row) if row else None

    async def get_course_with_roadmaps(self, slug: str) -> Optional[CourseWithRoadmaps]:
        """Get a course and its published roadmaps in display order."""
        course = await self.get_course_by_slug(slug)
        if course is None:
            return None

        roadmaps = await (
            self.client.table("roadmaps")
            .select("*")
            .eq("course_id", course.id)
            .eq("is_published", True)
            .order("order_index")
            .all()
        )
        return CourseWithRoadmaps(**course.model_dump(), roadmaps=roadmaps)

    async def get_roadmap_by_slug(self, slug: str) -> Optional[Roadmap]:
        validate_slug(slug)
        row = await (
            self.client.table("roadmaps")
            .select("*, course:courses(*)")
            .eq("slug", slug)
            .eq("is_published", True)
            .one_or_none()
        )
        return Roadmap.model_validate(row) if row else None

    async def get_roadmap_with_topics(self, slug: str) -> Optional[RoadmapWithTopics]:
        """Get a roadmap, its course and its published topics in order."""
        roadmap = await self.get_roadmap_by_slug(slug)
        if roadmap is None:
            return None

        topics = await (
            self.client.table("topics")
            .select("*")
            .eq("roadmap_id", roadmap.id)
            .eq("is_published", True)
            .order("order_index")
            .all()
        )
        return RoadmapWithTopics(**roadmap.model_dump(), topics=topics)

    async def get_topic_by_slug(
        self,
        roadmap_slug: str,
        topic_slug: str,
        user_id: Optional[str] = None,
    ) -> Optional[TopicWithProgress]:
        """Get a topic within a roadmap, with the user's progress if known."""
        validate_slug(roadmap_slug, "roadmap_slug")
        validate_slug(topic_slug, "topic_slug")
        if user_id is not None:
            user_id = validate_uuid(user_id, "user_id")

        roadmap = await (
            self.client.table("roadmaps")
            .select("id")
            .eq("slug", roadmap_slug)
            .one_or_none()
        )
        if roadmap is None:
            return None

        row = await (
            self.client.table("topics")
            .select("*, roadmap:roadmaps(*), quiz:quizzes(*)")
            .eq("slug", topic_slug)
            .eq("roadmap_id", roadmap["id"])
            .eq("is_published", True)
            .one_or_none()
        )
        if row is None:
            return None

        topic = TopicWithProgress.model_validate(row)
        if user_id is not None:
            progress = await (
                self.client.table("user_progress")
                .select("*")
                .eq("user_id", user_id)
                .eq("topic_id", topic.id)
                .one_or_none()
            )
            if progress:
                topic.user_progress = UserProgress.model_validate(progress)
        return topic

    async def search_content(self, query: str) -> SearchResults:
        """Search titles, descriptions and topic content."""
        pattern = sanitize_search_query(query)
        if pattern is None:
            return SearchResults()

        courses, roadmaps, topics = await asyncio.gather(
            self.client.table("courses")
            .select("*")
            .ilike_any(["title", "description"], pattern)
            .eq("is_published", True)
            .limit(SEARCH_COURSE_LIMIT)
            .all(),
            self.client.table("roadmaps")
            .select("*, course:courses(*)")
            .ilike_any(["title", "description"], pattern)
            .eq("is_published", True)
            .limit(SEARCH_ROADMAP_LIMIT)
            .all(),
            self.client.table("topics")
            .select("*, roadmap:roadmaps(*, course:courses(*))")
            .ilike_any(["title", "description", "content"], pattern)
            .eq("is_published", True)
            .limit(SEARCH_TOPIC_LIMIT)
            .all(),
        )
        return SearchResults(courses=courses, roadmaps=roadmaps, topics=topics)
