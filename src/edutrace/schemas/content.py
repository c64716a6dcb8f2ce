"""Course, roadmap, topic and quiz schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

DifficultyLevel = Literal["beginner", "intermediate", "advanced"]
QuizType = Literal["topic", "final_exam"]
QuestionType = Literal["multiple_choice", "true_false", "matching"]
ResourceType = Literal[
    "article",
    "video",
    "diagram",
    "quiz",
    "tutorial",
    "notebook",
    "textbook",
    "practice",
    "simulation",
    "infographic",
]


class Course(BaseModel):
    """Course row."""

    id: str
    title: str
    description: Optional[str] = None
    slug: str
    image_url: Optional[str] = None
    difficulty_level: DifficultyLevel
    category: str
    is_published: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Roadmap(BaseModel):
    """Roadmap row, optionally with its course embedded."""

    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    slug: str
    estimated_hours: float = 0
    order_index: int = 0
    is_published: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    course: Optional[Course] = None


class ResourceLink(BaseModel):
    type: ResourceType
    title: str
    url: str


class Topic(BaseModel):
    """Topic row, optionally with its roadmap embedded."""

    id: str
    roadmap_id: str
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    slug: str
    order_index: int = 0
    estimated_minutes: int = 0
    resources: List[ResourceLink] = []
    is_published: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    roadmap: Optional[Roadmap] = None


class QuizQuestion(BaseModel):
    id: str
    quiz_id: str
    question_text: str
    question_type: QuestionType
    options: List[str] = []
    correct_answer: List[str] = []
    explanation: Optional[str] = None
    points: int = 1
    order_index: int = 0


class Quiz(BaseModel):
    """Quiz row; owned by either a topic or a roadmap."""

    id: str
    topic_id: Optional[str] = None
    roadmap_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    quiz_type: QuizType
    passing_score: int
    time_limit_minutes: Optional[int] = None
    max_attempts: int
    is_published: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuizWithQuestions(Quiz):
    questions: List[QuizQuestion] = []


class CourseWithRoadmaps(Course):
    roadmaps: List[Roadmap] = []


class RoadmapWithTopics(Roadmap):
    topics: List[Topic] = []


class CourseList(BaseModel):
    items: List[Course]


class SearchResults(BaseModel):
    """Matches grouped by content type."""

    courses: List[Course] = []
    roadmaps: List[Roadmap] = []
    topics: List[Topic] = []


class CourseFilters(BaseModel):
    """Optional course listing filters."""

    model_config = ConfigDict(extra="ignore")

    category: Optional[str] = None
    difficulty_level: Optional[DifficultyLevel] = None
    search: Optional[str] = None
