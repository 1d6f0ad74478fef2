"""응답/제약조건/기본 응답 목록 ↔ 저장 표현 (JSON 텍스트)

빈 목록은 "[]"가 아니라 None(부재)으로 저장한다.
None은 빈 목록으로 복원한다. 형식이 깨진 레코드는 경고 후 건너뛴다.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional

from .answer import Answer
from .choice import Choice
from .constraints import Constraint, constraint_from_dict

if TYPE_CHECKING:
    from .question import Question

logger = logging.getLogger(__name__)


def dump_records(records: Iterable[dict[str, Any]]) -> Optional[str]:
    items = list(records)
    if not items:
        return None
    return json.dumps(items, ensure_ascii=False)


def load_records(text: Optional[str]) -> list[dict[str, Any]]:
    if text is None or not text.strip():
        return []
    try:
        data = json.loads(text)
    except ValueError:
        logger.warning("Discarding unreadable record list: %.80s", text)
        return []
    if not isinstance(data, list):
        logger.warning("Record list is not a JSON array, discarding")
        return []
    return [item for item in data if isinstance(item, dict)]


# --- Answer ---


def dump_answers(answers: Iterable[Answer]) -> Optional[str]:
    return dump_records(a.to_dict() for a in answers)


def load_answers(question: "Question", text: Optional[str]) -> list[Answer]:
    answers: list[Answer] = []
    for record in load_records(text):
        try:
            answers.append(Answer.from_dict(question, record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed answer record: %s: %s", record, e)
    return answers


# --- Constraint ---


def dump_constraints(constraints: Iterable[Constraint]) -> Optional[str]:
    return dump_records(c.to_dict() for c in constraints)


def load_constraints(text: Optional[str]) -> list[Constraint]:
    constraints: list[Constraint] = []
    for record in load_records(text):
        try:
            constraints.append(constraint_from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed constraint record: %s: %s", record, e)
    return constraints


# --- Choice (기본 응답 목록) ---


def dump_choices(choices: Iterable[Choice]) -> Optional[str]:
    return dump_records(c.to_dict() for c in choices)


def load_choices(text: Optional[str]) -> list[Choice]:
    choices: list[Choice] = []
    for record in load_records(text):
        try:
            choices.append(Choice.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed choice record: %s: %s", record, e)
    return choices
