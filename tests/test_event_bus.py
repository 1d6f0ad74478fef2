"""EventBus 테스트"""

from src.core.event_bus import EventBus, SurveyEvent
from src.core.event_types import EventTypes


def _event(event_type: str = EventTypes.ANSWER_RECORDED, **data) -> SurveyEvent:
    return SurveyEvent(event_type=event_type, data=data, source="test")


class TestSubscribeEmit:
    def test_subscriber_receives_event(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventTypes.ANSWER_RECORDED, received.append)
        assert bus.emit(_event(question_id=1)) is True
        assert received[0].data == {"question_id": 1}

    def test_subscribers_called_in_order(self):
        bus = EventBus()
        order = []
        bus.subscribe(EventTypes.QUESTION_COMPLETED, lambda e: order.append("progress"))
        bus.subscribe(EventTypes.QUESTION_COMPLETED, lambda e: order.append("audit"))
        bus.emit(_event(EventTypes.QUESTION_COMPLETED))
        assert order == ["progress", "audit"]

    def test_other_types_not_delivered(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventTypes.ANSWER_REJECTED, received.append)
        bus.emit(_event(EventTypes.QUESTION_COMPLETED))
        assert received == []

    def test_no_subscribers(self):
        """구독자 없는 발행도 정상 처리"""
        assert EventBus().emit(_event()) is True

    def test_same_event_twice_delivered_twice(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventTypes.ANSWER_RECORDED, received.append)
        bus.emit(_event())
        bus.emit(_event())
        assert len(received) == 2


class TestUnsubscribe:
    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventTypes.ANSWER_RECORDED, received.append)
        bus.unsubscribe(EventTypes.ANSWER_RECORDED, received.append)
        bus.emit(_event())
        assert received == []

    def test_unsubscribe_unknown_handler(self):
        """미등록 핸들러 해제: 경고만"""
        EventBus().unsubscribe(EventTypes.ANSWER_RECORDED, lambda e: None)


class TestReentry:
    def test_same_type_reemit_dropped(self):
        bus = EventBus()
        results = []

        def echo(event: SurveyEvent) -> None:
            results.append(bus.emit(_event()))

        bus.subscribe(EventTypes.ANSWER_RECORDED, echo)
        bus.emit(_event())
        assert results == [False]

    def test_other_type_from_subscriber_delivered(self):
        bus = EventBus()
        completed = []
        bus.subscribe(
            EventTypes.ANSWER_RECORDED,
            lambda e: bus.emit(_event(EventTypes.QUESTION_COMPLETED)),
        )
        bus.subscribe(EventTypes.QUESTION_COMPLETED, completed.append)
        bus.emit(_event())
        assert len(completed) == 1

    def test_guard_released_after_failure(self):
        bus = EventBus()
        calls = []

        def failing(event: SurveyEvent) -> None:
            calls.append(1)
            raise RuntimeError("boom")

        bus.subscribe(EventTypes.ANSWER_RECORDED, failing)
        bus.emit(_event())
        assert bus.emit(_event()) is True
        assert len(calls) == 2


class TestHandlerError:
    def test_failing_subscriber_does_not_stop_others(self):
        bus = EventBus()
        results = []

        def bad(event: SurveyEvent) -> None:
            raise ValueError("boom")

        bus.subscribe(EventTypes.ANSWER_RECORDED, bad)
        bus.subscribe(EventTypes.ANSWER_RECORDED, lambda e: results.append("ok"))
        bus.emit(_event())
        assert results == ["ok"]


class TestClear:
    def test_clear_removes_all(self):
        bus = EventBus()
        bus.subscribe(EventTypes.ANSWER_RECORDED, lambda e: None)
        bus.subscribe(EventTypes.QUESTION_ASKED, lambda e: None)
        assert bus.handler_count == 2
        bus.clear()
        assert bus.handler_count == 0
