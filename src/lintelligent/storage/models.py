"""SQLAlchemy table definitions for review persistence."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CodeReviewRow(Base):
    """One row per submitted review; user_rating/rated_at are the only mutable columns."""

    __tablename__ = "code_reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    code: Mapped[str] = mapped_column(Text)
    language: Mapped[str] = mapped_column(String(50))
    review_type: Mapped[str] = mapped_column(String(100))
    ai_feedback: Mapped[dict[str, Any]] = mapped_column(JSON)
    ai_model: Mapped[str] = mapped_column(String(100))
    user_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
