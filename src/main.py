"""FastAPI application entrypoint."""

import importlib
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.health import router as health_router
from src.api.survey import router as survey_router
from src.config import settings
from src.core.event_bus import EventBus
from src.core.logging import get_logger, setup_logging
from src.db.database import SessionLocal, engine as db_engine
from src.db.models import Base
from src.services.survey_service import SurveyService
from src.services.survey_progress import SurveyProgress

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


def load_handler_modules(module_names: list[str]) -> int:
    """핸들러 모듈 import (데코레이터가 레지스트리에 등록). 반환: 로드된 수량."""
    count = 0
    for name in module_names:
        try:
            importlib.import_module(name)
            count += 1
        except ImportError:
            logger.exception("Failed to import handler module: %s", name)
    return count


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # DB 테이블 생성
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    # 핸들러 레지스트리 구성
    loaded = load_handler_modules(settings.HANDLER_MODULES)
    logger.info("Answer handler modules loaded: %d", loaded)

    # SurveyService 초기화
    logger.info("Initializing SurveyService...")
    event_bus = EventBus()
    db_session = SessionLocal()
    progress = SurveyProgress()
    progress.attach(event_bus)
    app.state.event_bus = event_bus
    app.state.survey_progress = progress
    app.state.survey_service = SurveyService(db_session, event_bus)
    logger.info("SurveyService initialized.")

    yield

    # 종료 시 정리
    logger.info("Shutting down...")
    progress.detach()
    db_session.close()


app = FastAPI(title="Survey Answer Engine", lifespan=lifespan)

app.include_router(health_router)
app.include_router(survey_router)
