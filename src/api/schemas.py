"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.core.survey.field_types import FieldType


# === Request Schemas ===


class StartSurveyRequest(BaseModel):
    """설문 시작 요청"""

    user_id: str = Field(..., min_length=1, max_length=64, description="사용자 ID")
    title: str = Field("", max_length=200, description="설문 제목")


class ChoiceSchema(BaseModel):
    """선택지 (label/value)"""

    label: Optional[str] = None
    value: str = Field(..., min_length=1)
    is_system_choice: bool = False


class AskQuestionRequest(BaseModel):
    """질문 추가 요청"""

    question_text: str = Field(..., min_length=1, description="질문 본문")
    field_type: FieldType = FieldType.NONE
    internal_id: int = 0
    is_mandatory: bool = False
    pick_only_default_answers: bool = False
    expects_command: bool = False
    follow_up: Optional[str] = None
    follow_up_separator: Optional[str] = Field(None, max_length=10)
    max_buttons_per_row: Optional[int] = Field(None, ge=0)
    constraints: list[dict[str, Any]] = Field(
        default_factory=list,
        description='명시 제약조건 레코드 (예: {"type": "integer", "kind": "integer_range", "minimum": 1})',
    )
    derive_constraint: bool = Field(True, description="field_type 기본 제약조건 유도 여부")
    default_answers: list[ChoiceSchema] = Field(default_factory=list)
    system_choices: list[str] = Field(
        default_factory=list, description="추가할 시스템 선택지: back, cancel, skip, done"
    )
    callback_handler: Optional[str] = Field(None, description="등록된 핸들러 클래스 id")


class AnswerRequest(BaseModel):
    """응답 요청. 자유 텍스트 또는 직렬화된 선택지 JSON."""

    text: str = Field(..., description="사용자 응답 원문")


# === Response Schemas ===


class StartSurveyResponse(BaseModel):
    survey_id: int
    user_id: str


class QuestionResponse(BaseModel):
    """현재 질문 정보"""

    question_id: int
    survey_id: int
    text: str
    field_type: FieldType
    is_completed: bool
    is_mandatory: bool
    expects_command: bool
    keyboard: list[list[ChoiceSchema]] = []
    answer_count: int = 0


class AnswerInfo(BaseModel):
    raw_text: Optional[str] = None
    choice: Optional[ChoiceSchema] = None
    value: str


class AnswerResponse(BaseModel):
    """응답 처리 결과"""

    question_id: int
    is_completed: bool
    saved: bool
    answer: AnswerInfo


class ProgressResponse(BaseModel):
    """설문 진행 카운터 (프로세스 기동 이후 집계)"""

    survey_id: int
    questions_asked: int = 0
    questions_deleted: int = 0
    answers_recorded: int = 0
    answers_rejected: int = 0
    questions_completed: int = 0


class ErrorResponse(BaseModel):
    """에러 응답"""

    error: str
    detail: Optional[str] = None
