"""질문(Question) 집합 루트

제약조건 목록, 기록된 응답, 기본 응답(추천 선택지) 목록, 완료 플래그,
디스패치 훅을 소유한다.

규칙:
- is_completed는 가장 최근에 기록된 응답의 제약조건 검사 결과로만 갱신
- 응답 목록은 추가 전용 (호출 순서 = 기록 순서)
- 컬렉션은 튜플 스냅샷으로만 노출. 변경은 Question 메서드 경유
- 내부 잠금 없음. 같은 질문에 대한 동시 호출 직렬화는 호출자 책임
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional, Union, overload

from src.core.logging import get_logger

from .answer import Answer, utc_now
from .choice import NEW_KEYBOARD_LINE, Choice, parse_choice
from .constraints import Constraint, constraint_from_field_type
from .field_types import FieldType
from .handlers import (
    AnswerEvent,
    EventCallback,
    HandlerConfigurationError,
    HandlerRegistry,
    check_callback,
    handler_registry,
    type_id,
)
from .serialization import (
    dump_answers,
    dump_choices,
    dump_constraints,
    load_answers,
    load_choices,
    load_constraints,
)

logger = get_logger(__name__)

DEFAULT_MAX_BUTTONS_PER_ROW = 3
DEFAULT_FOLLOW_UP_SEPARATOR = "\n"


class Question:
    """설문 질문 1건 (라이브 인스턴스 또는 템플릿)"""

    def __init__(
        self,
        question_text: str = "",
        field_type: FieldType = FieldType.NONE,
        *,
        id: Optional[int] = None,
        internal_id: int = 0,
        survey_id: Optional[int] = None,
        is_mandatory: bool = False,
        pick_only_default_answers: bool = False,
        expects_command: bool = False,
        follow_up: Optional[str] = None,
        follow_up_separator: str = DEFAULT_FOLLOW_UP_SEPARATOR,
        max_buttons_per_row: int = DEFAULT_MAX_BUTTONS_PER_ROW,
        created_utc: Optional[datetime] = None,
        registry: Optional[HandlerRegistry] = None,
    ) -> None:
        self.id = id
        self.internal_id = internal_id
        self.survey_id = survey_id
        self.field_type = FieldType(field_type)
        self.question_text = question_text
        self.is_mandatory = is_mandatory
        self.pick_only_default_answers = pick_only_default_answers
        self.expects_command = expects_command
        self.follow_up = follow_up
        self.follow_up_separator = follow_up_separator
        self.max_buttons_per_row = max_buttons_per_row
        self.created_utc = created_utc or utc_now()

        self._registry = registry or handler_registry
        self._is_completed = False
        self._answers: list[Answer] = []
        self._constraints: list[Constraint] = []
        self._default_answers: list[Choice] = []
        self._callback_handler: Optional[type] = None
        self._on_event: Optional[EventCallback] = None

    def __repr__(self) -> str:
        return (
            f"Question({self.id}|{self.internal_id}|{self.survey_id}|"
            f"{self.field_type.value}|{self._is_completed}|{self.is_mandatory}|"
            f"{self.expects_command}|{self.question_text!r}|{self.follow_up!r})"
        )

    # === 상태 (읽기 전용) ===

    @property
    def is_completed(self) -> bool:
        return self._is_completed

    @property
    def answers(self) -> tuple[Answer, ...]:
        return tuple(self._answers)

    @property
    def last_answer(self) -> Optional[Answer]:
        return self._answers[-1] if self._answers else None

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return tuple(self._constraints)

    @property
    def default_answers(self) -> tuple[Choice, ...]:
        return tuple(self._default_answers)

    @property
    def display_text(self) -> str:
        """질문 본문 + follow_up"""
        if not self.follow_up:
            return self.question_text
        return f"{self.question_text}{self.follow_up_separator}{self.follow_up}"

    # === 제약조건 ===

    def add_constraint(self, constraint: Constraint) -> bool:
        """제약조건 부착. 같은 field_type이 이미 있으면 거부(False)."""
        if any(c.field_type == constraint.field_type for c in self._constraints):
            logger.warning(
                "Constraint for %s already attached to question %r, ignoring",
                constraint.field_type.value,
                self.question_text,
            )
            return False
        self._constraints.append(constraint)
        return True

    def derive_constraint_from_field_type(self) -> None:
        """선언된 field_type의 기본 제약조건 부착. 멱등."""
        if self.field_type == FieldType.NONE:
            return
        if any(c.field_type == self.field_type for c in self._constraints):
            return
        constraint = constraint_from_field_type(self.field_type)
        if constraint is not None:
            self._constraints.append(constraint)

    def validate(self, value: Optional[str]) -> bool:
        """부착된 모든 제약조건의 AND. 제약조건이 없으면 True."""
        return all(c.validate(value) for c in self._constraints)

    def accepts(self, value: Optional[str]) -> bool:
        """응답 값 수용 여부. pick_only_default_answers면 기본 응답 중 하나여야 함."""
        if not self.validate(value):
            return False
        if self.pick_only_default_answers:
            return any(
                c.value == value
                for c in self._default_answers
                if c is not NEW_KEYBOARD_LINE and not c.is_system_choice
            )
        return True

    # === 응답 기록 ===

    @overload
    def add_answer(self, answer: str) -> Answer: ...

    @overload
    def add_answer(self, answer: Choice) -> Answer: ...

    @overload
    def add_answer(self, answer: Answer) -> Optional[Answer]: ...

    def add_answer(self, answer: Union[str, Choice, Answer]) -> Optional[Answer]:
        """응답 기록.

        - str: 직렬화된 Choice면 Choice 응답, 아니면 자유 텍스트
        - Choice: Choice 응답
        - Answer: 다른 질문의 응답이거나 이미 기록된 인스턴스면 None (부수효과 없음)

        제약조건 검사 결과가 is_completed가 되고, 기록 후 on_event 콜백 호출.
        """
        if isinstance(answer, Answer):
            if answer.question is not self:
                return None
            if any(a is answer for a in self._answers):
                return None
            recorded = answer
        elif isinstance(answer, Choice):
            recorded = Answer(question=self, choice=answer)
        elif isinstance(answer, str):
            choice = parse_choice(answer)
            if choice is not None:
                recorded = Answer(question=self, choice=choice)
            else:
                recorded = Answer(question=self, raw_text=answer)
        else:
            raise TypeError(f"Unsupported answer type: {type(answer).__name__}")

        completed = recorded.enforce_constraints()
        self._answers.append(recorded)
        self._is_completed = completed

        self._dispatch(recorded)
        return recorded

    def _dispatch(self, answer: Answer) -> None:
        if self._on_event is None:
            return
        event = AnswerEvent(question=self, answer=answer, is_completed=self._is_completed)
        try:
            self._on_event(event)
        except Exception:
            logger.exception(
                "on_event callback failed for question %r (answer kept)",
                self.question_text,
            )

    # === 기본 응답 목록 ===

    def add_default_answer(
        self, answer: Union[Choice, str, None], label: Optional[str] = None
    ) -> None:
        """기본 응답 1개 추가. 제약조건 위반이면 조용히 거부.

        줄바꿈 마커/시스템 선택지는 검사 없이 추가.
        문자열이면 Choice(label or value, value)로 변환, 공백 문자열은 무시.
        """
        if answer is None:
            return
        if isinstance(answer, str):
            if not answer.strip():
                return
            answer = Choice(label=answer if label is None else label, value=answer)

        if not answer.bypasses_constraints and not self.validate(answer.value):
            return
        self._default_answers.append(answer)

    def add_default_answers(self, answers: Optional[Iterable[Union[Choice, str]]]) -> None:
        """기본 응답 여러 개 추가. 제약조건 위반 항목도 로그만 남기고 추가."""
        if answers is None:
            return
        for answer in answers:
            if isinstance(answer, str):
                if not answer.strip():
                    continue
                answer = Choice(label=answer, value=answer)
            if not answer.bypasses_constraints and not self.validate(answer.value):
                logger.debug(
                    "Choice %s is not valid for question %r, type: %s",
                    answer.value,
                    self.question_text,
                    self.field_type.value,
                )
            self._default_answers.append(answer)

    def remove_default_answer(self, answer: Union[Choice, str]) -> None:
        """Choice면 동일 인스턴스 1개 제거, 문자열이면 value 일치 항목 전부 제거"""
        if isinstance(answer, str):
            self._default_answers = [c for c in self._default_answers if c.value != answer]
            return
        for i, choice in enumerate(self._default_answers):
            if choice is answer:
                del self._default_answers[i]
                return

    def clear_default_answers_list(self, keep_system_choices: bool = False) -> None:
        """keep_system_choices면 back/cancel/skip 등 시스템 선택지는 유지"""
        if not keep_system_choices:
            self._default_answers.clear()
        else:
            self._default_answers = [c for c in self._default_answers if c.is_system_choice]

    def update_default_answer_label(self, value: str, label: str) -> None:
        """값이 일치하는 첫 기본 응답의 라벨 변경.

        기존 Choice 객체는 바꾸지 않고 새 Choice로 교체. 줄바꿈 마커는 제외.
        """
        for index, choice in enumerate(self._default_answers):
            if choice is NEW_KEYBOARD_LINE:
                continue
            if choice.value == value:
                self._default_answers[index] = Choice(
                    label=label, value=choice.value, is_system_choice=choice.is_system_choice
                )
                return

    # === 디스패치 훅 ===

    @property
    def callback_handler(self) -> Optional[type]:
        """응답마다 공유 인스턴스의 on_answer가 호출될 핸들러 클래스"""
        return self._callback_handler

    @callback_handler.setter
    def callback_handler(self, value: Optional[type]) -> None:
        if value is None:
            self._callback_handler = None
            return
        if not self._registry.is_registered(value):
            raise HandlerConfigurationError(
                f"{value!r} is not a registered answer handler "
                "(decorate it with @answer_handler)"
            )
        self._callback_handler = value

    @property
    def callback_handler_name(self) -> Optional[str]:
        if self._callback_handler is None:
            return None
        return type_id(self._callback_handler)

    @callback_handler_name.setter
    def callback_handler_name(self, value: Optional[str]) -> None:
        handler = self._registry.get_handler(value)
        if handler is None and value:
            logger.debug("Answer handler %r not registered, leaving unconfigured", value)
        self._callback_handler = handler

    @property
    def on_event(self) -> Optional[EventCallback]:
        """응답 기록 직후 동기 호출되는 콜백"""
        return self._on_event

    @on_event.setter
    def on_event(self, value: Optional[EventCallback]) -> None:
        self._on_event = check_callback(value)

    @property
    def on_event_name(self) -> Optional[str]:
        return self._registry.encode_callback(self._on_event)

    @on_event_name.setter
    def on_event_name(self, value: Optional[str]) -> None:
        self._on_event = self._registry.resolve_callback(value)

    # === 영속화 레코드 ===

    def to_record(self) -> dict[str, Any]:
        """저장소 컬럼 값. 빈 컬렉션은 None."""
        return {
            "id": self.id,
            "internal_id": self.internal_id,
            "survey_id": self.survey_id,
            "field_type": self.field_type.value,
            "question_text": self.question_text,
            "is_completed": self._is_completed,
            "is_mandatory": self.is_mandatory,
            "pick_only_default_answers": self.pick_only_default_answers,
            "expects_command": self.expects_command,
            "follow_up": self.follow_up,
            "follow_up_separator": self.follow_up_separator,
            "max_buttons_per_row": self.max_buttons_per_row,
            "created_utc": self.created_utc,
            "answers": dump_answers(self._answers),
            "constraints": dump_constraints(self._constraints),
            "default_answers": dump_choices(self._default_answers),
            "callback_handler_name": self.callback_handler_name,
            "on_event_name": self.on_event_name,
        }

    @classmethod
    def from_record(
        cls, record: dict[str, Any], registry: Optional[HandlerRegistry] = None
    ) -> Question:
        """to_record() 결과 → Question. 핸들러 복원 실패는 미설정으로 처리."""
        question = cls(
            question_text=record.get("question_text") or "",
            field_type=FieldType(record.get("field_type") or FieldType.NONE.value),
            id=record.get("id"),
            internal_id=record.get("internal_id") or 0,
            survey_id=record.get("survey_id"),
            is_mandatory=bool(record.get("is_mandatory")),
            pick_only_default_answers=bool(record.get("pick_only_default_answers")),
            expects_command=bool(record.get("expects_command")),
            follow_up=record.get("follow_up"),
            follow_up_separator=record.get("follow_up_separator")
            or DEFAULT_FOLLOW_UP_SEPARATOR,
            max_buttons_per_row=(
                record["max_buttons_per_row"]
                if record.get("max_buttons_per_row") is not None
                else DEFAULT_MAX_BUTTONS_PER_ROW
            ),
            created_utc=record.get("created_utc"),
            registry=registry,
        )
        question._is_completed = bool(record.get("is_completed"))
        question._answers = load_answers(question, record.get("answers"))
        for constraint in load_constraints(record.get("constraints")):
            question.add_constraint(constraint)
        question._default_answers = load_choices(record.get("default_answers"))
        question.callback_handler_name = record.get("callback_handler_name")
        question.on_event_name = record.get("on_event_name")
        return question
