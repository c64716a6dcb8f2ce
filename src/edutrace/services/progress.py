"""Progress tracking and roadmap completion."""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from edutrace.clients.data_service import DataServiceClient
from edutrace.schemas.progress import ProgressUpdate, RoadmapProgress, UserProgress
from edutrace.validators import parse_request, validate_uuid


class ProgressService:
    """Service for per-user topic progress and roadmap completion."""

    def __init__(self, client: DataServiceClient):
        self.client = client

    async def get_roadmap_progress(self, user_id: str, roadmap_id: str) -> RoadmapProgress:
        """Topic counts and completion percentage for one roadmap."""
        user_id = validate_uuid(user_id, "user_id")
        roadmap_id = validate_uuid(roadmap_id, "roadmap_id")

        data = await self.client.rpc(
            "calculate_roadmap_progress",
            {"p_user_id": user_id, "p_roadmap_id": roadmap_id},
        )
        if isinstance(data, list):
            data = data[0] if data else None
        return RoadmapProgress.model_validate(data) if data else RoadmapProgress()

    async def is_roadmap_completed(self, user_id: str, roadmap_id: str) -> bool:
        user_id = validate_uuid(user_id, "user_id")
        roadmap_id = validate_uuid(roadmap_id, "roadmap_id")

        data = await self.client.rpc(
            "is_roadmap_completed",
            {"p_user_id": user_id, "p_roadmap_id": roadmap_id},
        )
        return bool(data)

    async def batch_check_roadmap_completion(
        self, user_id: str, roadmap_ids: Sequence[str]
    ) -> Dict[str, bool]:
        """Completion status for many roadmaps in a single RPC.

        The returned mapping has exactly one entry per requested id; ids the
        backend does not report are ``False``.
        """
        user_id = validate_uuid(user_id, "user_id")
        requested = [validate_uuid(rid, "roadmap_ids") for rid in roadmap_ids]
        if not requested:
            return {}

        data = await self.client.rpc(
            "batch_check_roadmap_completion",
            {"p_user_id": user_id, "p_roadmap_ids": requested},
        )

        reported: Dict[str, bool] = {}
        for row in data if isinstance(data, list) else []:
            if not isinstance(row, dict):
                continue
            roadmap_id = row.get("roadmap_id")
            is_completed = row.get("is_completed")
            if roadmap_id and isinstance(is_completed, bool):
                reported[str(roadmap_id)] = is_completed

        return {rid: reported.get(rid, False) for rid in requested}

    async def get_topic_progress(self, user_id: str, topic_id: str) -> Optional[UserProgress]:
        user_id = validate_uuid(user_id, "user_id")
        topic_id = validate_uuid(topic_id, "topic_id")

        row = await (
            self.client.table("user_progress")
            .select("*")
            .eq("user_id", user_id)
            .eq("topic_id", topic_id)
            .one_or_none()
        )
        return UserProgress.model_validate(row) if row else None

    async def update_topic_progress(
        self, user_id: str, request: Union[ProgressUpdate, Mapping[str, Any]]
    ) -> UserProgress:
        """Create or replace the user's progress row for one topic."""
        user_id = validate_uuid(user_id, "user_id")
        update = parse_request(ProgressUpdate, request)

        completion_date = (
            datetime.now(timezone.utc).isoformat() if update.is_completed else None
        )
        row = await (
            self.client.table("user_progress")
            .upsert(
                {
                    "user_id": user_id,
                    "topic_id": update.topic_id,
                    "roadmap_id": update.roadmap_id,
                    "is_completed": update.is_completed,
                    "completion_date": completion_date,
                    "time_spent_minutes": update.time_spent_minutes or 0,
                },
                on_conflict="user_id,topic_id",
            )
            .select()
            .one()
        )
        return UserProgress.model_validate(row)
