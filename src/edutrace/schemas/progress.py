"""Progress tracking schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt, field_validator

from edutrace.schemas.content import Quiz, Roadmap, Topic
from edutrace.validators import validate_uuid


class UserProgress(BaseModel):
    """One row per (user, topic)."""

    id: Optional[str] = None
    user_id: str
    topic_id: str
    roadmap_id: Optional[str] = None
    is_completed: bool = False
    completion_date: Optional[datetime] = None
    time_spent_minutes: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    topic: Optional[Topic] = None
    roadmap: Optional[Roadmap] = None


class RoadmapProgress(BaseModel):
    total_topics: int = 0
    completed_topics: int = 0
    progress_percentage: float = 0


class TopicWithProgress(Topic):
    user_progress: Optional[UserProgress] = None
    quiz: Optional[Quiz] = None

    @field_validator("quiz", mode="before")
    @classmethod
    def _first_quiz(cls, value: Any) -> Any:
        # Embedded one-to-many relations arrive as lists
        if isinstance(value, list):
            return value[0] if value else None
        return value


class ProgressUpdate(BaseModel):
    """Upsert request for a user's progress on one topic."""

    model_config = ConfigDict(extra="ignore")

    topic_id: str
    roadmap_id: str
    is_completed: StrictBool
    time_spent_minutes: Optional[StrictInt] = None

    @field_validator("topic_id", "roadmap_id")
    @classmethod
    def _check_ids(cls, value: str, info) -> str:
        return validate_uuid(value.strip(), info.field_name)

    @field_validator("time_spent_minutes")
    @classmethod
    def _check_time(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("time_spent_minutes must be a non-negative integer")
        return value


class RoadmapCompletionRequest(BaseModel):
    roadmap_ids: List[str]


class RoadmapCompletion(BaseModel):
    roadmap_id: str
    is_completed: bool


class RoadmapCompletionMap(BaseModel):
    """Completion flag for every requested roadmap id."""

    items: Dict[str, bool]
