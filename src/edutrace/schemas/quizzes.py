"""Quiz attempt schemas."""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from edutrace.schemas.content import Quiz
from edutrace.validators import sanitize_answers, validate_uuid

Number = Union[StrictInt, StrictFloat]


def _floor(value: Number, field: str) -> int:
    if not math.isfinite(value):
        raise ValueError(f"{field} must be a finite number")
    return math.floor(value)


class QuizResult(BaseModel):
    """One stored quiz attempt."""

    id: Optional[str] = None
    user_id: str
    quiz_id: str
    score: int
    total_points: int
    percentage: Optional[float] = None
    passed: Optional[bool] = None
    answers: Dict[str, Any] = {}
    time_taken_minutes: Optional[int] = None
    attempt_number: int
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    quiz: Optional[Quiz] = None


class QuizResultList(BaseModel):
    items: List[QuizResult]


class QuizResultCreate(BaseModel):
    """Quiz attempt submission.

    Unknown fields are ignored. Numbers must be real numbers and are floored
    to integers. Malformed ``answers`` entries are dropped, not rejected.
    """

    model_config = ConfigDict(extra="ignore")

    quiz_id: StrictStr
    score: Number
    total_points: Number
    answers: Dict[str, Any]
    time_taken_minutes: Optional[Number] = None
    attempt_number: Number

    @field_validator("quiz_id")
    @classmethod
    def _check_quiz_id(cls, value: str) -> str:
        return validate_uuid(value.strip(), "quiz_id")

    @field_validator("score")
    @classmethod
    def _check_score(cls, value: Number) -> int:
        if value < 0:
            raise ValueError("score must be a non-negative number")
        return _floor(value, "score")

    @field_validator("total_points")
    @classmethod
    def _check_total_points(cls, value: Number) -> int:
        if value <= 0:
            raise ValueError("total_points must be a positive number")
        return _floor(value, "total_points")

    @field_validator("attempt_number")
    @classmethod
    def _check_attempt_number(cls, value: Number) -> int:
        if value < 1:
            raise ValueError("attempt_number must be a positive integer")
        return _floor(value, "attempt_number")

    @field_validator("time_taken_minutes")
    @classmethod
    def _check_time_taken(cls, value: Optional[Number]) -> Optional[int]:
        if value is None:
            return None
        if value < 0:
            raise ValueError("time_taken_minutes must be a non-negative number")
        return _floor(value, "time_taken_minutes")

    @field_validator("answers", mode="before")
    @classmethod
    def _sanitize_answers(cls, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise ValueError("answers is required and must be an object")
        return sanitize_answers(value)


class QuizEligibility(BaseModel):
    can_take: bool
    attempts_used: int
    max_attempts: int
