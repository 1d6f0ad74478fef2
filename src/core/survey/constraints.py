"""응답 제약조건 — 필드 타입별 검증 술어

규칙:
- validate()는 순수 함수. 어떤 문자열(빈 문자열, 잘못된 형식, None)에도 예외 없이 bool 반환
- 질문 단위로 field_type당 제약조건은 최대 1개
- 직렬화 레코드: {"type": field_type, "kind": 제약 종류, ...파라미터}
"""

from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Optional

from .field_types import FieldType

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?\d+")

TRUE_WORDS = frozenset({"true", "yes", "y", "1"})
FALSE_WORDS = frozenset({"false", "no", "n", "0"})

EMAIL_PATTERN = r"[^@\s]+@[^@\s]+\.[^@\s]+"
PHONE_PATTERN = r"\+?[0-9][0-9 ()\-]{5,19}"


class Constraint(ABC):
    """제약조건 기반 인터페이스"""

    kind: ClassVar[str]
    field_type: FieldType

    @abstractmethod
    def validate(self, value: Optional[str]) -> bool:
        """value가 제약을 만족하면 True"""
        ...

    def params(self) -> dict[str, Any]:
        """직렬화할 타입별 파라미터"""
        return {}

    def to_dict(self) -> dict[str, Any]:
        record: dict[str, Any] = {"type": self.field_type.value, "kind": self.kind}
        record.update(self.params())
        return record


@dataclass(frozen=True)
class TextLengthConstraint(Constraint):
    """앞뒤 공백 제거 후 길이 범위"""

    kind: ClassVar[str] = "text_length"
    min_length: int = 1
    max_length: Optional[int] = None
    field_type: FieldType = field(default=FieldType.TEXT, init=False)

    def validate(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        length = len(value.strip())
        if length < self.min_length:
            return False
        return self.max_length is None or length <= self.max_length

    def params(self) -> dict[str, Any]:
        return {"min_length": self.min_length, "max_length": self.max_length}


@dataclass(frozen=True)
class IntegerRangeConstraint(Constraint):
    """정수 파싱 가능 + 닫힌 구간 [minimum, maximum]. None이면 무제한."""

    kind: ClassVar[str] = "integer_range"
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    field_type: FieldType = field(default=FieldType.INTEGER, init=False)

    def validate(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        text = value.strip()
        if not _INTEGER_RE.fullmatch(text):
            return False
        try:
            number = int(text)
        except ValueError:  # 자릿수 한도 초과
            return False
        if self.minimum is not None and number < self.minimum:
            return False
        return self.maximum is None or number <= self.maximum

    def params(self) -> dict[str, Any]:
        return {"minimum": self.minimum, "maximum": self.maximum}


@dataclass(frozen=True)
class DecimalRangeConstraint(Constraint):
    """유한 소수 ("," 또는 "." 구분) + 닫힌 구간"""

    kind: ClassVar[str] = "decimal_range"
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    field_type: FieldType = field(default=FieldType.DECIMAL, init=False)

    def validate(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        text = value.strip().replace(",", ".")
        if not text:
            return False
        try:
            number = Decimal(text)
        except InvalidOperation:
            return False
        if not number.is_finite():
            return False
        if self.minimum is not None and number < Decimal(str(self.minimum)):
            return False
        return self.maximum is None or number <= Decimal(str(self.maximum))

    def params(self) -> dict[str, Any]:
        return {"minimum": self.minimum, "maximum": self.maximum}


@dataclass(frozen=True)
class BooleanConstraint(Constraint):
    """true/false/yes/no/y/n/1/0 (대소문자 무시)"""

    kind: ClassVar[str] = "boolean"
    field_type: FieldType = field(default=FieldType.BOOLEAN, init=False)

    def validate(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        word = value.strip().lower()
        return word in TRUE_WORDS or word in FALSE_WORDS


@dataclass(frozen=True)
class DateConstraint(Constraint):
    """formats 중 하나로 파싱되는 날짜"""

    kind: ClassVar[str] = "date"
    formats: tuple[str, ...] = ("%Y-%m-%d", "%d/%m/%Y")
    field_type: FieldType = field(default=FieldType.DATE, init=False)

    def validate(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        text = value.strip()
        for fmt in self.formats:
            try:
                datetime.strptime(text, fmt)
                return True
            except ValueError:
                continue
        return False

    def params(self) -> dict[str, Any]:
        return {"formats": list(self.formats)}


@dataclass(frozen=True)
class RegexConstraint(Constraint):
    """정규식 전체 일치. field_type은 부착 대상 타입 (EMAIL, PHONE 등)."""

    kind: ClassVar[str] = "regex"
    pattern: str = ".*"
    field_type: FieldType = FieldType.TEXT

    def validate(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        try:
            return re.fullmatch(self.pattern, value.strip()) is not None
        except re.error:
            logger.warning("Invalid constraint pattern: %s", self.pattern)
            return False

    def params(self) -> dict[str, Any]:
        return {"pattern": self.pattern}


@dataclass(frozen=True)
class AllowedValuesConstraint(Constraint):
    """고정 허용값 집합 소속 여부"""

    kind: ClassVar[str] = "allowed_values"
    allowed: frozenset[str] = frozenset()
    case_sensitive: bool = False
    field_type: FieldType = field(default=FieldType.CHOICE, init=False)

    def validate(self, value: Optional[str]) -> bool:
        if not isinstance(value, str):
            return False
        text = value.strip()
        if self.case_sensitive:
            return text in self.allowed
        return text.casefold() in {a.casefold() for a in self.allowed}

    def params(self) -> dict[str, Any]:
        return {"allowed": sorted(self.allowed), "case_sensitive": self.case_sensitive}


CONSTRAINT_KINDS: dict[str, type[Constraint]] = {
    cls.kind: cls
    for cls in (
        TextLengthConstraint,
        IntegerRangeConstraint,
        DecimalRangeConstraint,
        BooleanConstraint,
        DateConstraint,
        RegexConstraint,
        AllowedValuesConstraint,
    )
}


def constraint_from_field_type(field_type: FieldType) -> Optional[Constraint]:
    """필드 타입 → 기본 제약조건. 대응 없으면 None (NONE, CHOICE)."""
    if field_type == FieldType.TEXT:
        return TextLengthConstraint()
    if field_type == FieldType.INTEGER:
        return IntegerRangeConstraint()
    if field_type == FieldType.DECIMAL:
        return DecimalRangeConstraint()
    if field_type == FieldType.BOOLEAN:
        return BooleanConstraint()
    if field_type == FieldType.DATE:
        return DateConstraint()
    if field_type == FieldType.EMAIL:
        return RegexConstraint(pattern=EMAIL_PATTERN, field_type=FieldType.EMAIL)
    if field_type == FieldType.PHONE:
        return RegexConstraint(pattern=PHONE_PATTERN, field_type=FieldType.PHONE)

    logger.debug("No canonical constraint for field type %s", field_type.value)
    return None


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Non-finite bound: {value!r}")
    return number


def constraint_from_dict(data: dict[str, Any]) -> Constraint:
    """레코드 → Constraint. 알 수 없는 kind, 잘못된 파라미터, kind와 맞지 않는 type이면 ValueError."""
    kind = data.get("kind")
    cls = CONSTRAINT_KINDS.get(kind)  # type: ignore[arg-type]
    if cls is None:
        raise ValueError(f"Unknown constraint kind: {kind!r}")
    field_type = FieldType(data["type"])

    constraint: Constraint
    if cls is TextLengthConstraint:
        constraint = TextLengthConstraint(
            min_length=int(data.get("min_length", 1)),
            max_length=_optional_int(data.get("max_length")),
        )
    elif cls is IntegerRangeConstraint:
        constraint = IntegerRangeConstraint(
            minimum=_optional_int(data.get("minimum")),
            maximum=_optional_int(data.get("maximum")),
        )
    elif cls is DecimalRangeConstraint:
        constraint = DecimalRangeConstraint(
            minimum=_optional_float(data.get("minimum")),
            maximum=_optional_float(data.get("maximum")),
        )
    elif cls is BooleanConstraint:
        constraint = BooleanConstraint()
    elif cls is DateConstraint:
        constraint = DateConstraint(
            formats=tuple(str(f) for f in data.get("formats", DateConstraint.formats))
        )
    elif cls is RegexConstraint:
        return RegexConstraint(pattern=str(data["pattern"]), field_type=field_type)
    else:
        constraint = AllowedValuesConstraint(
            allowed=frozenset(str(a) for a in data.get("allowed", [])),
            case_sensitive=bool(data.get("case_sensitive", False)),
        )

    if constraint.field_type != field_type:
        raise ValueError(
            f"Constraint kind {kind!r} applies to {constraint.field_type.value}, "
            f"not {field_type.value}"
        )
    return constraint
