"""EventBus - 설문 진행 이벤트 통신

SurveyService가 질문/응답 처리 결과를 발행하고, 진행 집계 등 구독자가 받는다.

규칙:
- 이벤트 data는 ID와 플래그만 담는다 (Question/Answer 객체 금지)
- 구독자 예외는 로그만 남기고 다음 구독자 계속. 응답 기록에는 영향 없음
- 어떤 유형을 전달하는 도중 같은 유형이 다시 발행되면 버린다 (자기 재발행 루프 방지)
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SurveyEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: EventTypes 상수
        data: survey_id, question_id, user_id, is_completed 등
        source: 발행한 서비스 이름
    """

    event_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = ""


EventHandler = Callable[[SurveyEvent], None]


class EventBus:
    """동기식 이벤트 버스

    사용 패턴:
        bus = EventBus()
        progress.attach(bus)
        bus.emit(SurveyEvent(EventTypes.QUESTION_COMPLETED, {"survey_id": 1}, "survey_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._dispatching: Set[str] = set()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("EventBus 구독: %s → %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        try:
            self._handlers[event_type].remove(handler)
        except ValueError:
            logger.warning("핸들러 미등록: %s → %s", event_type, handler.__qualname__)

    def emit(self, event: SurveyEvent) -> bool:
        """구독자 동기 호출. 재진입으로 버려졌으면 False."""
        if event.event_type in self._dispatching:
            logger.warning(
                "EventBus 재진입 차단: %s (source=%s)", event.event_type, event.source
            )
            return False

        handlers = list(self._handlers.get(event.event_type, ()))
        if not handlers:
            logger.debug("EventBus: %s 구독자 없음", event.event_type)
            return True

        self._dispatching.add(event.event_type)
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "EventBus 핸들러 에러: %s (event=%s)",
                        handler.__qualname__,
                        event.event_type,
                    )
        finally:
            self._dispatching.discard(event.event_type)
        return True

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        self._handlers.clear()
        self._dispatching.clear()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
