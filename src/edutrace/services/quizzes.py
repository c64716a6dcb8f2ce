"""Quiz retrieval, attempt gating and result submission."""

import asyncio
from typing import Any, List, Mapping, Optional, Union

from edutrace.clients.data_service import DataServiceClient
from edutrace.config import get_settings
from edutrace.ratelimit import AnyRateLimiter, get_rate_limiter
from edutrace.schemas.content import QuizWithQuestions
from edutrace.schemas.quizzes import QuizEligibility, QuizResult, QuizResultCreate
from edutrace.validators import parse_request, validate_uuid


class QuizService:
    """Service for quizzes and quiz attempts."""

    def __init__(
        self,
        client: DataServiceClient,
        rate_limiter: Optional[AnyRateLimiter] = None,
    ):
        self.client = client
        self.settings = get_settings()
        self.rate_limiter = rate_limiter or get_rate_limiter()

    async def get_quiz_with_questions(self, quiz_id: str) -> Optional[QuizWithQuestions]:
        quiz_id = validate_uuid(quiz_id, "quiz_id")

        row = await (
            self.client.table("quizzes")
            .select("*, questions:quiz_questions(*)")
            .eq("id", quiz_id)
            .eq("is_published", True)
            .one_or_none()
        )
        if row is None:
            return None

        quiz = QuizWithQuestions.model_validate(row)
        quiz.questions.sort(key=lambda q: q.order_index)
        return quiz

    async def get_quiz_results(self, user_id: str, quiz_id: str) -> List[QuizResult]:
        """A user's attempts at a quiz, latest attempt first."""
        user_id = validate_uuid(user_id, "user_id")
        quiz_id = validate_uuid(quiz_id, "quiz_id")

        await self.rate_limiter.hit(
            f"quiz_results_{user_id}",
            self.settings.quiz_results_rate_limit,
            self.settings.rate_limit_window,
        )

        rows = await (
            self.client.table("quiz_results")
            .select("*")
            .eq("user_id", user_id)
            .eq("quiz_id", quiz_id)
            .order("attempt_number", desc=True)
            .all()
        )
        return [QuizResult.model_validate(row) for row in rows]

    async def can_take_quiz(self, user_id: str, quiz_id: str) -> Optional[QuizEligibility]:
        """Whether the user has attempts left; ``None`` if the quiz is unknown."""
        user_id = validate_uuid(user_id, "user_id")
        quiz_id = validate_uuid(quiz_id, "quiz_id")

        quiz, attempts = await asyncio.gather(
            self.client.table("quizzes")
            .select("max_attempts")
            .eq("id", quiz_id)
            .one_or_none(),
            self.client.table("quiz_results")
            .select("attempt_number")
            .eq("user_id", user_id)
            .eq("quiz_id", quiz_id)
            .all(),
        )
        if quiz is None:
            return None

        max_attempts = int(quiz.get("max_attempts") or 0)
        attempts_used = len(attempts)
        return QuizEligibility(
            can_take=attempts_used < max_attempts,
            attempts_used=attempts_used,
            max_attempts=max_attempts,
        )

    async def submit_quiz_result(
        self, user_id: str, request: Union[QuizResultCreate, Mapping[str, Any]]
    ) -> QuizResult:
        """Store one quiz attempt.

        Only the allow-listed fields of ``QuizResultCreate`` are written;
        malformed answer entries have already been dropped by the schema.
        """
        user_id = validate_uuid(user_id, "user_id")
        submission = parse_request(QuizResultCreate, request)

        row = await (
            self.client.table("quiz_results")
            .insert(
                {
                    "user_id": user_id,
                    "quiz_id": submission.quiz_id,
                    "score": submission.score,
                    "total_points": submission.total_points,
                    "answers": submission.answers,
                    "time_taken_minutes": submission.time_taken_minutes,
                    "attempt_number": submission.attempt_number,
                }
            )
            .select()
            .one()
        )
        return QuizResult.model_validate(row)
