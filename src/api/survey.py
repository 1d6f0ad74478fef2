"""Survey API endpoints (dialogue driver surface)."""

from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.schemas import (
    AnswerInfo,
    AnswerRequest,
    AnswerResponse,
    AskQuestionRequest,
    ChoiceSchema,
    ErrorResponse,
    ProgressResponse,
    QuestionResponse,
    StartSurveyRequest,
    StartSurveyResponse,
)
from src.config import settings
from src.core.logging import get_logger
from src.core.survey.choice import BACK, CANCEL, DONE, SKIP, Choice
from src.core.survey.constraints import constraint_from_dict
from src.core.survey.handlers import HandlerConfigurationError, handler_registry
from src.core.survey.keyboard import keyboard_rows
from src.core.survey.question import Question
from src.services.survey_progress import SurveyProgress
from src.services.survey_service import SurveyService

logger = get_logger(__name__)

router = APIRouter(tags=["survey"])

SYSTEM_CHOICE_NAMES: dict[str, Choice] = {
    "back": BACK,
    "cancel": CANCEL,
    "skip": SKIP,
    "done": DONE,
}


def get_survey_service(request: Request) -> SurveyService:
    """SurveyService 인스턴스 반환 (의존성 주입)"""
    service: SurveyService = request.app.state.survey_service
    return service


def get_survey_progress(request: Request) -> SurveyProgress:
    """SurveyProgress 인스턴스 반환 (의존성 주입)"""
    progress: SurveyProgress = request.app.state.survey_progress
    return progress


def _choice_schema(choice: Choice) -> ChoiceSchema:
    return ChoiceSchema(
        label=choice.label, value=choice.value, is_system_choice=choice.is_system_choice
    )


def _build_question(request: AskQuestionRequest) -> Question:
    """요청 → Question. 잘못된 구성은 ValueError."""
    question = Question(
        request.question_text,
        request.field_type,
        internal_id=request.internal_id,
        is_mandatory=request.is_mandatory,
        pick_only_default_answers=request.pick_only_default_answers,
        expects_command=request.expects_command,
        follow_up=request.follow_up,
        follow_up_separator=(
            request.follow_up_separator
            if request.follow_up_separator is not None
            else settings.DEFAULT_FOLLOW_UP_SEPARATOR
        ),
        max_buttons_per_row=(
            request.max_buttons_per_row
            if request.max_buttons_per_row is not None
            else settings.DEFAULT_MAX_BUTTONS_PER_ROW
        ),
    )

    for record in request.constraints:
        try:
            constraint = constraint_from_dict(record)
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid constraint record {record}: {e}") from e
        if not question.add_constraint(constraint):
            raise ValueError(f"Duplicate constraint for {constraint.field_type.value}")
    if request.derive_constraint:
        question.derive_constraint_from_field_type()

    question.add_default_answers(
        Choice(label=c.label, value=c.value, is_system_choice=c.is_system_choice)
        for c in request.default_answers
    )
    for name in request.system_choices:
        choice = SYSTEM_CHOICE_NAMES.get(name.lower())
        if choice is None:
            raise ValueError(f"Unknown system choice: {name}")
        question.add_default_answer(choice)

    if request.callback_handler:
        handler = handler_registry.get_handler(request.callback_handler)
        if handler is None:
            raise ValueError(f"Unknown answer handler: {request.callback_handler}")
        question.callback_handler = handler

    return question


@router.post("/surveys", response_model=StartSurveyResponse)
def start_survey(
    request: StartSurveyRequest,
    service: SurveyService = Depends(get_survey_service),
) -> StartSurveyResponse:
    """사용자 설문 시작"""
    survey_id = service.start_survey(request.user_id, request.title)
    return StartSurveyResponse(survey_id=survey_id, user_id=request.user_id)


@router.post(
    "/surveys/{survey_id}/questions",
    response_model=QuestionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def ask_question(
    survey_id: int,
    request: AskQuestionRequest,
    service: SurveyService = Depends(get_survey_service),
) -> QuestionResponse:
    """
    질문 추가

    설문의 현재 질문이 된다. 이후 응답은 이 질문에 기록된다.
    """
    if not service.survey_exists(survey_id):
        raise HTTPException(status_code=404, detail=f"Survey not found: {survey_id}")

    try:
        question = _build_question(request)
    except (ValueError, HandlerConfigurationError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not service.ask_question(survey_id, question):
        raise HTTPException(status_code=500, detail="Failed to save question")

    logger.info("Question %s asked in survey %d", question.id, survey_id)
    return _build_question_response(question)


@router.get(
    "/surveys/{survey_id}/progress",
    response_model=ProgressResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_progress(
    survey_id: int,
    service: SurveyService = Depends(get_survey_service),
    progress: SurveyProgress = Depends(get_survey_progress),
) -> ProgressResponse:
    """설문 진행 카운터"""
    if not service.survey_exists(survey_id):
        raise HTTPException(status_code=404, detail=f"Survey not found: {survey_id}")
    counts = progress.get(survey_id)
    if counts is None:
        return ProgressResponse(survey_id=survey_id)
    return ProgressResponse(**counts.to_dict())


@router.get(
    "/users/{user_id}/question",
    response_model=QuestionResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_current_question(
    user_id: str,
    service: SurveyService = Depends(get_survey_service),
) -> QuestionResponse:
    """사용자의 가장 최근 질문 + 키보드 배치"""
    question = service.find_most_recent_by_user_id(user_id)
    if question is None:
        raise HTTPException(status_code=404, detail=f"No question for user: {user_id}")
    return _build_question_response(question)


@router.post(
    "/users/{user_id}/answers",
    response_model=AnswerResponse,
    responses={404: {"model": ErrorResponse}},
)
def post_answer(
    user_id: str,
    request: AnswerRequest,
    service: SurveyService = Depends(get_survey_service),
) -> AnswerResponse:
    """
    응답 기록

    제약조건을 만족하지 않아도 기록되며 is_completed=false로 반환된다 (재질문 대상).
    """
    outcome = service.record_answer(user_id, request.text)
    if outcome is None:
        raise HTTPException(status_code=404, detail=f"No question for user: {user_id}")

    answer = outcome.answer
    return AnswerResponse(
        question_id=outcome.question.id,
        is_completed=outcome.is_completed,
        saved=outcome.saved,
        answer=AnswerInfo(
            raw_text=answer.raw_text,
            choice=_choice_schema(answer.choice) if answer.choice is not None else None,
            value=answer.value,
        ),
    )


def _build_question_response(question: Question) -> QuestionResponse:
    return QuestionResponse(
        question_id=question.id,
        survey_id=question.survey_id,
        text=question.display_text,
        field_type=question.field_type,
        is_completed=question.is_completed,
        is_mandatory=question.is_mandatory,
        expects_command=question.expects_command,
        keyboard=[
            [_choice_schema(c) for c in row] for row in keyboard_rows(question)
        ],
        answer_count=len(question.answers),
    )
