"""디스패치 훅 — 역량 검사, 콜백 호출, 식별자 인코딩/복원 테스트"""

import pytest

from src.core.survey.field_types import FieldType
from src.core.survey.handlers import (
    AnswerEvent,
    HandlerConfigurationError,
    HandlerRegistry,
    type_id,
)
from src.core.survey.question import Question

CALLS: list[str] = []


class AuditHandler:
    """테스트용 핸들러 (on_answer 역량 보유)"""

    def __init__(self) -> None:
        self.seen: list[str] = []

    def on_answer(self, event: AnswerEvent) -> None:
        self.seen.append(event.answer.value)

    def on_completed(self, event: AnswerEvent) -> None:
        if event.is_completed:
            self.seen.append(f"done:{event.answer.value}")

    @staticmethod
    def static_hook(event: AnswerEvent) -> None:
        CALLS.append(f"static:{event.answer.value}")


class NeedsDependency:
    """인자 없이 생성할 수 없는 핸들러"""

    def __init__(self, dependency) -> None:
        self.dependency = dependency

    def on_answer(self, event: AnswerEvent) -> None:
        pass


class NotAHandler:
    def notify(self, event: AnswerEvent) -> None:
        pass


def module_callback(event: AnswerEvent) -> None:
    CALLS.append(event.answer.value)


def exploding_callback(event: AnswerEvent) -> None:
    raise RuntimeError("boom")


@pytest.fixture(autouse=True)
def _reset_calls():
    CALLS.clear()
    yield
    CALLS.clear()


@pytest.fixture()
def setup(registry: HandlerRegistry):
    registry.handler(AuditHandler)
    registry.callback(module_callback)
    question = Question("Age?", FieldType.INTEGER, registry=registry)
    question.derive_constraint_from_field_type()
    return registry, question


# ── 등록 ──


class TestRegistration:
    def test_handler_without_on_answer_rejected(self, registry) -> None:
        with pytest.raises(HandlerConfigurationError):
            registry.handler(NotAHandler)

    def test_decorator_returns_class(self, registry) -> None:
        assert registry.handler(AuditHandler) is AuditHandler
        assert registry.is_registered(AuditHandler)

    def test_shared_instance(self, setup) -> None:
        registry, _ = setup
        assert registry.get_instance(AuditHandler) is registry.get_instance(AuditHandler)

    def test_instance_of_unregistered_class_rejected(self, registry) -> None:
        with pytest.raises(HandlerConfigurationError):
            registry.get_instance(AuditHandler)


# ── 할당 시 역량 검사 ──


class TestAssignment:
    def test_registered_handler_accepted(self, setup) -> None:
        _, question = setup
        question.callback_handler = AuditHandler
        assert question.callback_handler is AuditHandler

    def test_unregistered_handler_rejected(self, setup) -> None:
        _, question = setup
        with pytest.raises(HandlerConfigurationError):
            question.callback_handler = NotAHandler

    def test_none_clears_handler(self, setup) -> None:
        _, question = setup
        question.callback_handler = AuditHandler
        question.callback_handler = None
        assert question.callback_handler is None

    def test_bound_method_of_handler_accepted(self, setup) -> None:
        _, question = setup
        question.on_event = AuditHandler().on_completed
        assert question.on_event is not None

    def test_bound_method_of_non_handler_rejected(self, setup) -> None:
        _, question = setup
        with pytest.raises(HandlerConfigurationError):
            question.on_event = NotAHandler().notify

    def test_plain_function_accepted(self, setup) -> None:
        _, question = setup
        question.on_event = module_callback
        assert question.on_event is module_callback

    def test_non_callable_rejected(self, setup) -> None:
        _, question = setup
        with pytest.raises(HandlerConfigurationError):
            question.on_event = "module_callback"  # type: ignore[assignment]

    def test_configuration_error_is_value_error(self) -> None:
        assert issubclass(HandlerConfigurationError, ValueError)


# ── 호출 ──


class TestInvocation:
    def test_callback_receives_event(self, setup) -> None:
        _, question = setup
        events: list[AnswerEvent] = []
        question.on_event = events.append

        answer = question.add_answer("42")
        assert len(events) == 1
        assert events[0].question is question
        assert events[0].answer is answer
        assert events[0].is_completed is True

    def test_called_once_per_answer(self, setup) -> None:
        _, question = setup
        question.on_event = module_callback
        question.add_answer("1")
        question.add_answer("x")
        assert CALLS == ["1", "x"]

    def test_rejected_prebuilt_answer_not_dispatched(self, setup) -> None:
        _, question = setup
        question.on_event = module_callback
        answer = question.add_answer("1")
        question.add_answer(answer)
        assert CALLS == ["1"]

    def test_raising_callback_keeps_answer(self, setup) -> None:
        _, question = setup
        question.on_event = exploding_callback
        answer = question.add_answer("42")
        assert question.last_answer is answer
        assert question.is_completed is True

    def test_no_callback_no_error(self, setup) -> None:
        _, question = setup
        question.add_answer("42")
        assert question.is_completed is True


# ── 식별자 인코딩/복원 ──


class TestEncoding:
    def test_handler_name_round_trip(self, setup) -> None:
        registry, question = setup
        question.callback_handler = AuditHandler
        assert question.callback_handler_name == type_id(AuditHandler)

        restored = Question("Age?", registry=registry)
        restored.callback_handler_name = question.callback_handler_name
        assert restored.callback_handler is AuditHandler

    def test_unknown_handler_name_degrades(self, setup) -> None:
        _, question = setup
        question.callback_handler = AuditHandler
        question.callback_handler_name = "somewhere.Gone"
        assert question.callback_handler is None

    def test_static_callback_encoding(self, setup) -> None:
        _, question = setup
        question.on_event = module_callback
        assert question.on_event_name == f"{module_callback.__module__}`True`module_callback"

    def test_static_callback_round_trip(self, setup) -> None:
        registry, question = setup
        question.on_event = module_callback

        restored = Question("Age?", registry=registry)
        restored.on_event_name = question.on_event_name
        assert restored.on_event is module_callback

    def test_instance_callback_binds_shared_instance(self, setup) -> None:
        registry, question = setup
        shared = registry.get_instance(AuditHandler)
        question.on_event = shared.on_completed
        assert question.on_event_name == f"{type_id(AuditHandler)}`False`on_completed"

        restored = Question("Age?", FieldType.INTEGER, registry=registry)
        restored.derive_constraint_from_field_type()
        restored.on_event_name = question.on_event_name
        restored.add_answer("30")
        assert shared.seen == ["done:30"]

    def test_staticmethod_of_registered_handler(self, setup) -> None:
        registry, question = setup
        question.on_event = AuditHandler.static_hook
        encoded = question.on_event_name
        assert encoded == f"{type_id(AuditHandler)}`True`static_hook"

        restored = Question("Age?", registry=registry)
        restored.on_event_name = encoded
        restored.add_answer("5")
        assert CALLS == ["static:5"]

    @pytest.mark.parametrize(
        "encoded",
        [
            "",
            "   ",
            "no delimiter",
            "a`True",
            "a`True`b`c",
            "mod.Type`maybe`method",
            "mod.Type`True`",
            "unknown.module`True`func",
            "unknown.Type`False`on_answer",
        ],
    )
    def test_malformed_or_unknown_degrades_to_none(self, setup, encoded) -> None:
        _, question = setup
        question.on_event = module_callback
        question.on_event_name = encoded
        assert question.on_event is None

    def test_static_instance_mismatch_degrades(self, setup) -> None:
        _, question = setup
        owner = type_id(AuditHandler)
        question.on_event_name = f"{owner}`False`static_hook"
        assert question.on_event is None
        question.on_event_name = f"{owner}`True`on_answer"
        assert question.on_event is None

    def test_missing_method_degrades(self, setup) -> None:
        _, question = setup
        question.on_event_name = f"{type_id(AuditHandler)}`False`renamed_method"
        assert question.on_event is None

    def test_none_name_when_unconfigured(self, setup) -> None:
        _, question = setup
        assert question.on_event_name is None
        assert question.callback_handler_name is None

    def test_unbuildable_handler_degrades(self, setup) -> None:
        registry, question = setup
        registry.handler(NeedsDependency)
        question.on_event_name = f"{type_id(NeedsDependency)}`False`on_answer"
        assert question.on_event is None

    def test_unbuildable_handler_in_record_degrades(self, setup) -> None:
        registry, question = setup
        registry.handler(NeedsDependency)
        record = question.to_record()
        record["on_event_name"] = f"{type_id(NeedsDependency)}`False`on_answer"

        restored = Question.from_record(record, registry=registry)
        assert restored.on_event is None
        assert restored.question_text == "Age?"
