"""응답(Answer) — 질문 1개에 대한 기록 1건"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from .choice import Choice

if TYPE_CHECKING:
    from .question import Question


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class Answer:
    """자유 텍스트 또는 Choice 중 하나만 채워진 응답.

    동등성은 동일성(is) 기준. question은 소유하지 않는 역참조.
    """

    question: "Question" = field(repr=False)
    raw_text: Optional[str] = None
    choice: Optional[Choice] = None
    created_utc: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if (self.raw_text is None) == (self.choice is None):
            raise ValueError("Answer requires exactly one of raw_text or choice")

    @property
    def value(self) -> str:
        """제약조건 검사 대상 값"""
        if self.choice is not None:
            return self.choice.value
        return self.raw_text  # type: ignore[return-value]

    def enforce_constraints(self) -> bool:
        """소유 질문의 제약조건으로 검증. 부수효과 없음."""
        if self.choice is not None and self.choice.bypasses_constraints:
            return True
        return self.question.accepts(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw_text": self.raw_text,
            "choice": self.choice.to_dict() if self.choice is not None else None,
            "created_utc": self.created_utc.isoformat(),
        }

    @classmethod
    def from_dict(cls, question: "Question", data: dict[str, Any]) -> Answer:
        choice_data = data.get("choice")
        created = data.get("created_utc")
        return cls(
            question=question,
            raw_text=data.get("raw_text") if choice_data is None else None,
            choice=Choice.from_dict(choice_data) if choice_data is not None else None,
            created_utc=datetime.fromisoformat(created) if created else utc_now(),
        )
