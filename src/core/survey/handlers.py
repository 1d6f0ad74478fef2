"""응답 디스패치 훅 — 핸들러 레지스트리

질문에 응답이 기록될 때마다 호출될 핸들러/콜백을 관리한다.

규칙:
- 핸들러 클래스는 on_answer(event)를 가진 AnswerHandler 역량을 만족해야 등록된다
- 콜백의 바인딩 대상(receiver)은 AnswerHandler 역량을 만족해야 한다
- 영속화 식별자: 핸들러 = "<module>.<qualname>",
  콜백 = "<선언 타입 id>`<True|False>`<메서드명>"
- 식별자 복원 실패 → 예외 없이 "핸들러 없음"
- 핸들러 클래스당 공유 인스턴스 1개 (호출 간 상태 유지)
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Protocol, runtime_checkable

from src.core.logging import get_logger

if TYPE_CHECKING:
    from .answer import Answer
    from .question import Question

logger = get_logger(__name__)

CALLBACK_DELIMITER = "`"


class HandlerConfigurationError(ValueError):
    """역량 검사에 실패한 핸들러/콜백 설정 (개발자 오류)"""


@dataclass(frozen=True)
class AnswerEvent:
    """응답 기록 이벤트 페이로드"""

    question: "Question"
    answer: "Answer"
    is_completed: bool


# 콜백 타입: AnswerEvent를 받는 callable
EventCallback = Callable[[AnswerEvent], None]


@runtime_checkable
class AnswerHandler(Protocol):
    """응답 콜백 핸들러 역량"""

    def on_answer(self, event: AnswerEvent) -> None: ...


def type_id(obj: type | Callable) -> str:
    """클래스/함수 → "<module>.<qualname>" """
    return f"{obj.__module__}.{obj.__qualname__}"


def _declaring_type_id(func: Callable) -> str:
    """함수를 선언한 타입 id. 모듈 수준 함수면 모듈명."""
    owner, _, _ = func.__qualname__.rpartition(".")
    return f"{func.__module__}.{owner}" if owner else func.__module__


def is_handler_class(cls: object) -> bool:
    return inspect.isclass(cls) and callable(getattr(cls, "on_answer", None))


class HandlerRegistry:
    """핸들러 클래스/콜백 저장소.

    사용 패턴:
        registry = HandlerRegistry()

        @registry.handler
        class AgeHandler:
            def on_answer(self, event): ...

        @registry.callback
        def audit(event): ...
    """

    def __init__(self) -> None:
        self._handlers: dict[str, type] = {}
        self._callbacks: dict[str, EventCallback] = {}
        self._instances: dict[type, AnswerHandler] = {}

    # === 등록 ===

    def handler(self, cls: type) -> type:
        """핸들러 클래스 등록 (데코레이터 겸용). 역량 미충족 시 에러."""
        if not is_handler_class(cls):
            raise HandlerConfigurationError(
                f"{cls!r} does not implement on_answer(event); "
                "it cannot be registered as an answer handler"
            )
        key = type_id(cls)
        if key in self._handlers and self._handlers[key] is not cls:
            logger.warning("Overwriting answer handler: %s", key)
        self._handlers[key] = cls
        self._instances.pop(cls, None)
        logger.debug("Answer handler registered: %s", key)
        return cls

    def callback(self, func: EventCallback) -> EventCallback:
        """정적(모듈 수준/staticmethod) 콜백 등록 (데코레이터 겸용)"""
        if not callable(func) or inspect.ismethod(func):
            raise HandlerConfigurationError(
                f"{func!r} is not a plain function; register its class instead"
            )
        key = f"{_declaring_type_id(func)}.{func.__name__}"
        if key in self._callbacks and self._callbacks[key] is not func:
            logger.warning("Overwriting answer callback: %s", key)
        self._callbacks[key] = func
        logger.debug("Answer callback registered: %s", key)
        return func

    def clear(self) -> None:
        """모든 등록 해제 (테스트용)"""
        self._handlers.clear()
        self._callbacks.clear()
        self._instances.clear()

    # === 조회 ===

    def is_registered(self, cls: type) -> bool:
        return self._handlers.get(type_id(cls)) is cls

    def get_handler(self, key: Optional[str]) -> Optional[type]:
        if not key:
            return None
        return self._handlers.get(key)

    def get_instance(self, cls: type) -> AnswerHandler:
        """등록된 핸들러 클래스의 공유 인스턴스 (지연 생성)"""
        if not self.is_registered(cls):
            raise HandlerConfigurationError(f"{type_id(cls)} is not a registered answer handler")
        instance = self._instances.get(cls)
        if instance is None:
            instance = cls()
            self._instances[cls] = instance
        return instance

    # === 인코딩 ===

    def encode_callback(self, func: Optional[EventCallback]) -> Optional[str]:
        """콜백 → 영속화 식별자"""
        if func is None:
            return None
        if inspect.ismethod(func):
            owner = type_id(type(func.__self__))
            return CALLBACK_DELIMITER.join((owner, "False", func.__func__.__name__))
        name = getattr(func, "__name__", None)
        if name is None:
            return None
        return CALLBACK_DELIMITER.join((_declaring_type_id(func), "True", name))

    def resolve_callback(self, encoded: Optional[str]) -> Optional[EventCallback]:
        """영속화 식별자 → 콜백. 실패 시 None (로그만 남김)."""
        if encoded is None or not encoded.strip():
            return None

        parts = encoded.split(CALLBACK_DELIMITER)
        if len(parts) != 3 or not all(p.strip() for p in parts):
            logger.debug("Malformed callback identifier: %r", encoded)
            return None

        owner, static_flag, method = parts
        if static_flag not in ("True", "False"):
            logger.debug("Malformed callback static flag: %r", encoded)
            return None

        if static_flag == "True":
            func = self._callbacks.get(f"{owner}.{method}")
            if func is None:
                cls = self._handlers.get(owner)
                candidate = inspect.getattr_static(cls, method, None) if cls else None
                if isinstance(candidate, staticmethod):
                    func = candidate.__func__
            if func is None:
                logger.debug("Static answer callback not found: %r", encoded)
            return func

        cls = self._handlers.get(owner)
        if cls is None:
            logger.debug("Answer handler for callback not registered: %r", encoded)
            return None
        if isinstance(inspect.getattr_static(cls, method, None), staticmethod):
            # 저장 이후 정적 메서드로 바뀜
            logger.debug("Callback method is now static, ignoring: %r", encoded)
            return None
        try:
            instance = self.get_instance(cls)
        except Exception:
            logger.debug(
                "Answer handler %s could not be instantiated: %r", owner, encoded, exc_info=True
            )
            return None
        bound = getattr(instance, method, None)
        if not callable(bound):
            logger.debug("Callback method not found on handler: %r", encoded)
            return None
        return bound


def check_callback(func: Optional[EventCallback]) -> Optional[EventCallback]:
    """on_event 할당 시 역량 검사. 위반 시 HandlerConfigurationError."""
    if func is None:
        return None
    if not callable(func):
        raise HandlerConfigurationError(f"on_event must be callable, got {func!r}")
    receiver = getattr(func, "__self__", None)
    if inspect.ismethod(func) and not isinstance(receiver, AnswerHandler):
        raise HandlerConfigurationError(
            f"on_event target {type(receiver).__name__} must implement "
            "on_answer(event) (AnswerHandler)"
        )
    return func


# 기본 레지스트리. 시작 시 HANDLER_MODULES import로 채워진다.
handler_registry = HandlerRegistry()
answer_handler = handler_registry.handler
answer_callback = handler_registry.callback
