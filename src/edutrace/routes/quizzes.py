"""Quiz endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from edutrace.auth import get_current_user
from edutrace.clients.data_service import DataServiceClient
from edutrace.db.base import get_db
from edutrace.schemas.content import QuizWithQuestions
from edutrace.schemas.quizzes import (
    QuizEligibility,
    QuizResult,
    QuizResultCreate,
    QuizResultList,
)
from edutrace.services.quizzes import QuizService

router = APIRouter()


@router.post("/results", response_model=QuizResult, status_code=201)
async def submit_quiz_result(
    payload: QuizResultCreate,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> QuizResult:
    """Store a finished quiz attempt."""
    service = QuizService(db)
    return await service.submit_quiz_result(str(user_id), payload)


@router.get("/{quiz_id}", response_model=QuizWithQuestions)
async def get_quiz(
    quiz_id: str,
    db: DataServiceClient = Depends(get_db),
) -> QuizWithQuestions:
    service = QuizService(db)
    quiz = await service.get_quiz_with_questions(quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.get("/{quiz_id}/results", response_model=QuizResultList)
async def list_quiz_results(
    quiz_id: str,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> QuizResultList:
    """The caller's attempts at a quiz, latest first."""
    service = QuizService(db)
    results = await service.get_quiz_results(str(user_id), quiz_id)
    return QuizResultList(items=results)


@router.get("/{quiz_id}/eligibility", response_model=QuizEligibility)
async def get_quiz_eligibility(
    quiz_id: str,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> QuizEligibility:
    """Whether the caller may start another attempt."""
    service = QuizService(db)
    eligibility = await service.can_take_quiz(str(user_id), quiz_id)
    if not eligibility:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return eligibility
