"""선택지(Choice) 값 객체 + 시스템 선택지

- 동등성은 value 기준 (label은 표시 전용)
- NEW_KEYBOARD_LINE은 키보드 줄바꿈 마커. 동일성(is)으로만 판별한다.
"""

from __future__ import annotations

import json
from typing import Any, Optional


class Choice:
    """선택 가능한 응답 토큰 (label/value 쌍)"""

    __slots__ = ("label", "_value", "_is_system_choice")

    def __init__(
        self,
        label: Optional[str] = None,
        value: Optional[str] = None,
        is_system_choice: bool = False,
    ) -> None:
        if value is None:
            value = label
        if value is None:
            raise ValueError("Choice requires a label or a value")
        self._value = str(value)
        self.label = self._value if label is None else str(label)
        self._is_system_choice = bool(is_system_choice)

    @property
    def value(self) -> str:
        return self._value

    @property
    def is_system_choice(self) -> bool:
        return self._is_system_choice

    @property
    def bypasses_constraints(self) -> bool:
        """줄바꿈 마커 또는 시스템 선택지 → 제약조건 검사 제외"""
        return self is NEW_KEYBOARD_LINE or self._is_system_choice

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Choice):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        flag = ", system" if self._is_system_choice else ""
        return f"Choice({self.label!r}, {self._value!r}{flag})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "value": self._value,
            "is_system_choice": self._is_system_choice,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Choice:
        """레코드 → Choice. 줄바꿈 마커 레코드는 싱글톤으로 복원."""
        value = data["value"]
        if not isinstance(value, str):
            raise ValueError(f"Choice value must be a string: {value!r}")
        if value == NEW_KEYBOARD_LINE.value and data.get("is_system_choice"):
            return NEW_KEYBOARD_LINE
        label = data.get("label")
        return cls(
            label=label if isinstance(label, str) else None,
            value=value,
            is_system_choice=data.get("is_system_choice") is True,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


# --- 시스템 선택지 ---
NEW_KEYBOARD_LINE = Choice(label="", value="__new_keyboard_line__", is_system_choice=True)

BACK = Choice(label="« Back", value="/back", is_system_choice=True)
CANCEL = Choice(label="✖ Cancel", value="/cancel", is_system_choice=True)
SKIP = Choice(label="Skip »", value="/skip", is_system_choice=True)
DONE = Choice(label="✔ Done", value="/done", is_system_choice=True)

SYSTEM_CHOICES = (BACK, CANCEL, SKIP, DONE)


def parse_choice(raw: Optional[str]) -> Optional[Choice]:
    """문자열이 직렬화된 Choice 레코드인지 판별.

    JSON 객체 형태이고 문자열 value를 가진 경우에만 Choice 반환.
    그 외(일반 텍스트, 잘못된 JSON, 다른 구조)는 None → 자유 텍스트로 취급.
    """
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not (text.startswith("{") and text.endswith("}")):
        return None

    try:
        data = json.loads(text)
    except ValueError:
        return None

    if not isinstance(data, dict) or not isinstance(data.get("value"), str):
        return None
    label = data.get("label")
    if label is not None and not isinstance(label, str):
        return None
    flag = data.get("is_system_choice", False)
    if not isinstance(flag, bool):
        return None

    return Choice.from_dict(data)
