"""Dashboard assembly.

Independent reads are issued concurrently. Only the profile read can fail
the dashboard; every other branch degrades to an empty default and is
logged, so a partial outage still renders a dashboard.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from edutrace.clients.data_service import DataServiceClient
from edutrace.config import get_settings
from edutrace.errors import DataServiceError, EduTraceError
from edutrace.schemas.dashboard import EnrolledRoadmap, Profile, UserDashboard
from edutrace.services.progress import ProgressService
from edutrace.validators import validate_uuid

logger = logging.getLogger(__name__)


def _rows_or_empty(result: Any, branch: str, user_id: str) -> List[Dict[str, Any]]:
    if isinstance(result, EduTraceError):
        logger.warning("Dashboard %s unavailable for %s: %s", branch, user_id, result)
        return []
    if isinstance(result, BaseException):
        raise result
    return list(result or [])


class DashboardService:
    """Aggregates profile, progress, certificates and quiz stats."""

    def __init__(self, client: DataServiceClient):
        self.client = client
        self.settings = get_settings()
        self.progress = ProgressService(client)

    async def get_user_dashboard(self, user_id: str) -> Optional[UserDashboard]:
        """Build the dashboard, or ``None`` if the user has no profile."""
        user_id = validate_uuid(user_id, "user_id")

        profile, progress, certificates, achievements = await asyncio.gather(
            self.client.table("profiles").select("*").eq("id", user_id).one(),
            self.client.table("user_progress")
            .select("*, topic:topics(*, roadmap:roadmaps(*))")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
            .limit(self.settings.dashboard_recent_progress_limit)
            .all(),
            self.client.table("certificates")
            .select("*, roadmap:roadmaps(*)")
            .eq("user_id", user_id)
            .order("issued_date", desc=True)
            .all(),
            self.client.table("achievements")
            .select("*")
            .eq("user_id", user_id)
            .order("earned_date", desc=True)
            .all(),
            return_exceptions=True,
        )

        if isinstance(profile, DataServiceError) and profile.is_not_found:
            return None
        if isinstance(profile, BaseException):
            raise profile

        recent_progress = _rows_or_empty(progress, "progress", user_id)
        certificates = _rows_or_empty(certificates, "certificates", user_id)
        achievements = _rows_or_empty(achievements, "achievements", user_id)

        # Distinct roadmaps, first-seen order
        enrolled = list(
            dict.fromkeys(
                row["roadmap_id"] for row in recent_progress if row.get("roadmap_id")
            )
        )

        completion: Dict[str, bool] = {}
        try:
            completion = await self.progress.batch_check_roadmap_completion(
                user_id, enrolled
            )
        except EduTraceError as exc:
            logger.error(
                "Failed to check roadmap completion status for %s: %s", user_id, exc
            )
        completed: Set[str] = {rid for rid, done in completion.items() if done}

        return UserDashboard(
            user=Profile.model_validate(profile),
            enrolled_roadmaps=[
                EnrolledRoadmap(roadmap_id=rid, is_completed=rid in completed)
                for rid in enrolled
            ],
            recent_progress=recent_progress,
            certificates=certificates,
            achievements=achievements,
            total_courses_started=len(enrolled),
            total_courses_completed=len(completed),
            total_quizzes_passed=await self._count_quizzes_passed(user_id),
        )

    async def _count_quizzes_passed(self, user_id: str) -> int:
        try:
            rows = await (
                self.client.table("quiz_results")
                .select("passed")
                .eq("user_id", user_id)
                .all()
            )
        except DataServiceError as exc:
            logger.warning("Quiz stats unavailable for %s: %s", user_id, exc)
            return 0
        return sum(1 for row in rows if row and row.get("passed"))
