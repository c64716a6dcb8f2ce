"""Dashboard schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from edutrace.schemas.certificates import Certificate
from edutrace.schemas.progress import UserProgress


class Profile(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Achievement(BaseModel):
    id: str
    user_id: str
    achievement_type: str
    title: str
    description: Optional[str] = None
    icon: Optional[str] = None
    earned_date: Optional[datetime] = None
    metadata: Dict[str, Any] = {}


class EnrolledRoadmap(BaseModel):
    roadmap_id: str
    is_completed: bool = False


class UserDashboard(BaseModel):
    """Everything the dashboard page shows for one user."""

    user: Profile
    enrolled_roadmaps: List[EnrolledRoadmap] = []
    recent_progress: List[UserProgress] = []
    certificates: List[Certificate] = []
    achievements: List[Achievement] = []
    total_courses_started: int = 0
    total_courses_completed: int = 0
    total_quizzes_passed: int = 0
