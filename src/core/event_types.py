"""이벤트 유형 상수"""


class EventTypes:
    """이벤트 유형 문자열 상수"""

    # survey
    SURVEY_STARTED = "survey_started"

    # question
    QUESTION_ASKED = "question_asked"
    QUESTION_COMPLETED = "question_completed"
    QUESTION_DELETED = "question_deleted"

    # answer
    ANSWER_RECORDED = "answer_recorded"
    ANSWER_REJECTED = "answer_rejected"  # 제약조건 불충족 (재질문 대상)
