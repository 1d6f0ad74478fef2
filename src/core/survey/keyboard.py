"""기본 응답 목록 → 키보드 버튼 행 배치"""

from __future__ import annotations

from .choice import NEW_KEYBOARD_LINE, Choice
from .question import Question


def keyboard_rows(question: Question) -> list[list[Choice]]:
    """행당 최대 max_buttons_per_row개. NEW_KEYBOARD_LINE에서 강제 줄바꿈.

    빈 행은 만들지 않는다. max_buttons_per_row <= 0이면 행 길이 제한 없음.
    """
    limit = question.max_buttons_per_row
    rows: list[list[Choice]] = []
    current: list[Choice] = []

    for choice in question.default_answers:
        if choice is NEW_KEYBOARD_LINE:
            if current:
                rows.append(current)
            current = []
            continue
        if limit > 0 and len(current) >= limit:
            rows.append(current)
            current = []
        current.append(choice)

    if current:
        rows.append(current)
    return rows
