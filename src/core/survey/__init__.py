"""설문 응답-제약조건 엔진 Core 패키지

DB 무관 순수 Python 도메인 모델 + 검증/디스패치 로직.
"""

from src.core.survey.field_types import FieldType
from src.core.survey.choice import (
    BACK,
    CANCEL,
    DONE,
    NEW_KEYBOARD_LINE,
    SKIP,
    SYSTEM_CHOICES,
    Choice,
    parse_choice,
)
from src.core.survey.constraints import (
    AllowedValuesConstraint,
    BooleanConstraint,
    Constraint,
    DateConstraint,
    DecimalRangeConstraint,
    IntegerRangeConstraint,
    RegexConstraint,
    TextLengthConstraint,
    constraint_from_dict,
    constraint_from_field_type,
)
from src.core.survey.answer import Answer
from src.core.survey.handlers import (
    AnswerEvent,
    AnswerHandler,
    HandlerConfigurationError,
    HandlerRegistry,
    answer_callback,
    answer_handler,
    handler_registry,
)
from src.core.survey.question import Question
from src.core.survey.keyboard import keyboard_rows

__all__ = [
    "FieldType",
    "BACK",
    "CANCEL",
    "DONE",
    "NEW_KEYBOARD_LINE",
    "SKIP",
    "SYSTEM_CHOICES",
    "Choice",
    "parse_choice",
    "AllowedValuesConstraint",
    "BooleanConstraint",
    "Constraint",
    "DateConstraint",
    "DecimalRangeConstraint",
    "IntegerRangeConstraint",
    "RegexConstraint",
    "TextLengthConstraint",
    "constraint_from_dict",
    "constraint_from_field_type",
    "Answer",
    "AnswerEvent",
    "AnswerHandler",
    "HandlerConfigurationError",
    "HandlerRegistry",
    "answer_callback",
    "answer_handler",
    "handler_registry",
    "Question",
    "keyboard_rows",
]
