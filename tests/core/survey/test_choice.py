"""Choice 값 객체 + 선택지 판별 파싱 테스트"""

import json

import pytest

from src.core.survey.choice import (
    BACK,
    NEW_KEYBOARD_LINE,
    SYSTEM_CHOICES,
    Choice,
    parse_choice,
)


class TestChoice:
    def test_label_defaults_to_value(self) -> None:
        choice = Choice(value="42")
        assert choice.label == "42"

    def test_value_defaults_to_label(self) -> None:
        choice = Choice("Yes")
        assert choice.value == "Yes"

    def test_requires_label_or_value(self) -> None:
        with pytest.raises(ValueError):
            Choice()

    def test_equality_by_value_only(self) -> None:
        assert Choice("One", "1") == Choice("Uno", "1")
        assert Choice("One", "1") != Choice("One", "2")
        assert len({Choice("One", "1"), Choice("Uno", "1")}) == 1

    def test_label_mutable_value_not(self) -> None:
        choice = Choice("One", "1")
        choice.label = "First"
        assert choice.label == "First"
        with pytest.raises(AttributeError):
            choice.value = "2"  # type: ignore[misc]

    def test_system_choices_flagged(self) -> None:
        assert all(c.is_system_choice for c in SYSTEM_CHOICES)
        assert NEW_KEYBOARD_LINE.is_system_choice is True

    def test_bypass(self) -> None:
        assert NEW_KEYBOARD_LINE.bypasses_constraints is True
        assert BACK.bypasses_constraints is True
        assert Choice("x").bypasses_constraints is False


class TestChoiceRecord:
    def test_to_dict(self) -> None:
        assert Choice("Seven", "7").to_dict() == {
            "label": "Seven",
            "value": "7",
            "is_system_choice": False,
        }

    def test_marker_restores_singleton(self) -> None:
        assert Choice.from_dict(NEW_KEYBOARD_LINE.to_dict()) is NEW_KEYBOARD_LINE

    def test_non_string_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            Choice.from_dict({"value": 7})


class TestParseChoice:
    def test_parses_serialized_choice(self) -> None:
        choice = parse_choice(Choice("Seven", "7").to_json())
        assert choice == Choice("Seven", "7")
        assert choice.label == "Seven"

    def test_value_only_record(self) -> None:
        choice = parse_choice('{"value": "ok"}')
        assert choice.label == "ok"
        assert choice.is_system_choice is False

    def test_system_flag_preserved(self) -> None:
        choice = parse_choice(BACK.to_json())
        assert choice == BACK
        assert choice.is_system_choice is True

    @pytest.mark.parametrize(
        "raw",
        [
            "hello",
            "42",
            "",
            "{",
            '{"value": 7}',
            '{"label": "no value"}',
            '{"value": "x", "label": 3}',
            '{"value": "x", "is_system_choice": "yes"}',
            json.dumps(["value", "x"]),
            "{not json}",
        ],
    )
    def test_anything_else_is_free_text(self, raw) -> None:
        assert parse_choice(raw) is None

    def test_none_input(self) -> None:
        assert parse_choice(None) is None
