"""SQLAlchemy declarative base for all ORM models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""


class SurveyModel(Base):
    """ORM model for surveys (one per user conversation)."""

    __tablename__ = "surveys"

    survey_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    questions: Mapped[list["QuestionModel"]] = relationship(
        "QuestionModel",
        back_populates="survey",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("idx_survey_user", "user_id"),)


class QuestionModel(Base):
    """ORM model for questions.

    answers / constraints / default_answers hold JSON arrays, NULL when empty.
    """

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    survey_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("surveys.survey_id", ondelete="CASCADE"), nullable=False
    )
    internal_id: Mapped[int] = mapped_column(Integer, default=0)
    field_type: Mapped[str] = mapped_column(String, nullable=False, default="none")
    question_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, default=False)
    pick_only_default_answers: Mapped[bool] = mapped_column(Boolean, default=False)
    expects_command: Mapped[bool] = mapped_column(Boolean, default=False)

    follow_up: Mapped[str | None] = mapped_column(Text, nullable=True)
    follow_up_separator: Mapped[str] = mapped_column(String(10), default="\n")
    max_buttons_per_row: Mapped[int] = mapped_column(Integer, default=3)
    created_utc: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # 직렬화 컬렉션 (빈 목록 = NULL)
    answers: Mapped[str | None] = mapped_column(Text, nullable=True)
    constraints: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_answers: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 디스패치 훅 식별자
    callback_handler_name: Mapped[str | None] = mapped_column(String, nullable=True)
    on_event_name: Mapped[str | None] = mapped_column(String, nullable=True)

    survey: Mapped["SurveyModel"] = relationship("SurveyModel", back_populates="questions")
