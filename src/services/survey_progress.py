"""설문 진행 집계 — EventBus 구독자

SurveyService가 발행하는 이벤트로 설문별 카운터를 갱신한다.
프로세스 메모리에만 유지 (재시작 시 초기화).
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from src.core.event_bus import EventBus, SurveyEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SurveyProgressCounts:
    survey_id: int
    questions_asked: int = 0
    questions_deleted: int = 0
    answers_recorded: int = 0
    answers_rejected: int = 0
    questions_completed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# 이벤트 유형 → 증가시킬 카운터
_COUNTERS = {
    EventTypes.QUESTION_ASKED: "questions_asked",
    EventTypes.QUESTION_DELETED: "questions_deleted",
    EventTypes.ANSWER_RECORDED: "answers_recorded",
    EventTypes.ANSWER_REJECTED: "answers_rejected",
    EventTypes.QUESTION_COMPLETED: "questions_completed",
}


class SurveyProgress:
    """설문별 질문/응답 카운터"""

    def __init__(self) -> None:
        self._surveys: Dict[int, SurveyProgressCounts] = {}
        self._bus: Optional[EventBus] = None

    def attach(self, bus: EventBus) -> None:
        self._bus = bus
        bus.subscribe(EventTypes.SURVEY_STARTED, self._on_survey_started)
        for event_type in _COUNTERS:
            bus.subscribe(event_type, self._on_count_event)

    def detach(self) -> None:
        if self._bus is None:
            return
        self._bus.unsubscribe(EventTypes.SURVEY_STARTED, self._on_survey_started)
        for event_type in _COUNTERS:
            self._bus.unsubscribe(event_type, self._on_count_event)
        self._bus = None

    def get(self, survey_id: int) -> Optional[SurveyProgressCounts]:
        return self._surveys.get(survey_id)

    # === 이벤트 핸들러 ===

    def _counts_for(self, survey_id: int) -> SurveyProgressCounts:
        counts = self._surveys.get(survey_id)
        if counts is None:
            counts = SurveyProgressCounts(survey_id=survey_id)
            self._surveys[survey_id] = counts
        return counts

    def _on_survey_started(self, event: SurveyEvent) -> None:
        survey_id = event.data.get("survey_id")
        if survey_id is not None:
            self._counts_for(survey_id)

    def _on_count_event(self, event: SurveyEvent) -> None:
        survey_id = event.data.get("survey_id")
        if survey_id is None:
            logger.debug("Progress event without survey_id: %s", event.event_type)
            return
        counts = self._counts_for(survey_id)
        counter = _COUNTERS[event.event_type]
        setattr(counts, counter, getattr(counts, counter) + 1)
        if event.event_type == EventTypes.QUESTION_COMPLETED:
            logger.info(
                "Question %s completed in survey %s (%d so far)",
                event.data.get("question_id"),
                survey_id,
                counts.questions_completed,
            )
