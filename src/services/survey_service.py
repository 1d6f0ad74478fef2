"""설문 Service — Core↔DB 연결, 응답 처리, EventBus 통신

- 영속화 협력자: save / delete / find_most_recent_by_user_id
- 얇은 대화 드라이버: 현재 질문에 응답 기록 → 저장 → 핸들러/이벤트 디스패치
- 질문 순서 진행(다음 질문 선택)은 이 서비스의 책임이 아님
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.event_bus import EventBus, SurveyEvent
from src.core.event_types import EventTypes
from src.core.survey.answer import Answer
from src.core.survey.handlers import AnswerEvent, HandlerRegistry, handler_registry
from src.core.survey.question import Question
from src.db.models import QuestionModel, SurveyModel

logger = logging.getLogger(__name__)

# QuestionModel 컬럼 중 Question.to_record()와 1:1 대응하는 것
_QUESTION_COLUMNS = (
    "internal_id",
    "survey_id",
    "field_type",
    "question_text",
    "is_completed",
    "is_mandatory",
    "pick_only_default_answers",
    "expects_command",
    "follow_up",
    "follow_up_separator",
    "max_buttons_per_row",
    "created_utc",
    "answers",
    "constraints",
    "default_answers",
    "callback_handler_name",
    "on_event_name",
)


@dataclass
class AnswerOutcome:
    """응답 1회 처리 결과"""

    question: Question
    answer: Answer
    is_completed: bool
    saved: bool


class SurveyService:
    """설문/질문 영속화 + 응답 처리"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        registry: HandlerRegistry | None = None,
    ):
        self._db = db
        self._bus = event_bus
        self._registry = registry or handler_registry

    # === 설문 ===

    def start_survey(self, user_id: str, title: str = "") -> int:
        """사용자 설문 생성. 반환: survey_id"""
        survey = SurveyModel(
            user_id=user_id,
            title=title,
            created_at=datetime.now(timezone.utc),
        )
        self._db.add(survey)
        self._db.commit()

        self._bus.emit(
            SurveyEvent(
                event_type=EventTypes.SURVEY_STARTED,
                data={"survey_id": survey.survey_id, "user_id": user_id},
                source="survey_service",
            )
        )
        logger.info("Survey started: %d (user=%s)", survey.survey_id, user_id)
        return survey.survey_id

    def survey_exists(self, survey_id: int) -> bool:
        return self._db.get(SurveyModel, survey_id) is not None

    def ask_question(self, survey_id: int, question: Question) -> bool:
        """질문을 설문에 붙여 저장. 설문이 없거나 저장 실패면 False."""
        if not self.survey_exists(survey_id):
            logger.warning("Survey not found: %d", survey_id)
            return False

        question.survey_id = survey_id
        if not self.save(question):
            return False

        self._bus.emit(
            SurveyEvent(
                event_type=EventTypes.QUESTION_ASKED,
                data={"survey_id": survey_id, "question_id": question.id},
                source="survey_service",
            )
        )
        return True

    # === 영속화 협력자 ===

    def save(self, question: Question) -> bool:
        """질문 전체 상태 저장 (신규면 insert, 아니면 update). 실패 시 False.

        저장 실패와 무관하게 메모리상의 응답 기록은 유지된다.
        """
        record = question.to_record()
        try:
            model = self._db.get(QuestionModel, question.id) if question.id else None
            if model is None:
                model = QuestionModel()
                self._db.add(model)
            for column in _QUESTION_COLUMNS:
                setattr(model, column, record[column])
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Error saving question %r", question.question_text)
            return False

        question.id = model.id
        return True

    def delete(self, question: Question) -> bool:
        if question.id is None:
            return False
        try:
            model = self._db.get(QuestionModel, question.id)
            if model is None:
                return False
            self._db.delete(model)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Error deleting question %r", question.question_text)
            return False

        self._bus.emit(
            SurveyEvent(
                event_type=EventTypes.QUESTION_DELETED,
                data={"survey_id": question.survey_id, "question_id": question.id},
                source="survey_service",
            )
        )
        return True

    def find_most_recent_by_user_id(self, user_id: str) -> Optional[Question]:
        """사용자의 가장 최근 질문 (만료 여부 무관). 없거나 조회 실패면 None."""
        stmt = (
            select(QuestionModel)
            .join(SurveyModel, QuestionModel.survey_id == SurveyModel.survey_id)
            .where(SurveyModel.user_id == user_id)
            .order_by(QuestionModel.id.desc())
            .limit(1)
        )
        try:
            model = self._db.scalars(stmt).first()
        except SQLAlchemyError:
            logger.exception("Error getting the most recent question for %s", user_id)
            return None
        if model is None:
            return None
        return self._model_to_question(model)

    # === 응답 처리 ===

    def record_answer(self, user_id: str, raw: str) -> Optional[AnswerOutcome]:
        """사용자의 현재 질문에 응답 기록.

        1. 최근 질문 조회 (없으면 None)
        2. Question.add_answer → is_completed 갱신 + on_event 콜백
        3. 질문에 설정된 핸들러 클래스의 공유 인스턴스 on_answer 호출
        4. 저장 (실패해도 결과 반환, saved=False)
        5. answer_recorded + question_completed|answer_rejected 발행
        """
        question = self.find_most_recent_by_user_id(user_id)
        if question is None:
            logger.info("No pending question for user %s", user_id)
            return None

        answer = question.add_answer(raw)
        self._dispatch_to_handler(question, answer)
        saved = self.save(question)

        data = {
            "survey_id": question.survey_id,
            "user_id": user_id,
            "question_id": question.id,
            "is_completed": question.is_completed,
        }
        self._bus.emit(
            SurveyEvent(
                event_type=EventTypes.ANSWER_RECORDED, data=data, source="survey_service"
            )
        )
        self._bus.emit(
            SurveyEvent(
                event_type=(
                    EventTypes.QUESTION_COMPLETED
                    if question.is_completed
                    else EventTypes.ANSWER_REJECTED
                ),
                data=data,
                source="survey_service",
            )
        )

        logger.info(
            "Answer recorded: question=%s user=%s completed=%s",
            question.id,
            user_id,
            question.is_completed,
        )
        return AnswerOutcome(
            question=question,
            answer=answer,
            is_completed=question.is_completed,
            saved=saved,
        )

    # === 내부 ===

    def _dispatch_to_handler(self, question: Question, answer: Answer) -> None:
        handler_cls = question.callback_handler
        if handler_cls is None:
            return
        event = AnswerEvent(
            question=question, answer=answer, is_completed=question.is_completed
        )
        try:
            self._registry.get_instance(handler_cls).on_answer(event)
        except Exception:
            logger.exception(
                "Answer handler %s failed (answer kept)", handler_cls.__qualname__
            )

    def _model_to_question(self, model: QuestionModel) -> Question:
        record = {column: getattr(model, column) for column in _QUESTION_COLUMNS}
        record["id"] = model.id
        return Question.from_record(record, registry=self._registry)
