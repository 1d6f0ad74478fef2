"""질문 응답 필드 타입"""

from enum import Enum


class FieldType(str, Enum):
    """질문이 기대하는 응답의 의미 타입. 제약조건 자동 유도의 기준."""

    NONE = "none"  # 유도할 제약조건 없음
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    EMAIL = "email"
    PHONE = "phone"
    CHOICE = "choice"  # 허용값 집합은 질문마다 다르므로 명시 부착만
