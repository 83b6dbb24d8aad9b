"""ReviewStore - SQLAlchemy-backed persistence for reviews and ratings.

The engine is created lazily on first use and kept for the life of the
process. Callers on the request path treat every StorageError as
non-fatal: a review or rating that fails to persist is logged, never
surfaced to the user.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from lintelligent.models.review import CodeReview, ReviewFeedback, coerce_rating
from lintelligent.storage.models import Base, CodeReviewRow

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the review store cannot complete an operation."""


@dataclass
class RatingStatistics:
    """Aggregate rating signal across all stored reviews."""

    total_reviews: int
    total_ratings: int
    positive_ratings: int
    negative_ratings: int
    average_rating: float


class ReviewStore:
    """Stores reviews in any SQLAlchemy async database (SQLite by default)."""

    def __init__(self, database_url: str) -> None:
        self._database_url = database_url
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker | None = None

    async def _get_sessions(self) -> async_sessionmaker:
        if self._sessions is None:
            try:
                engine = create_async_engine(self._database_url)
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except (SQLAlchemyError, OSError, ValueError) as e:
                raise StorageError(f"Could not connect to review database: {e}") from e
            self._engine = engine
            self._sessions = async_sessionmaker(engine, expire_on_commit=False)
            logger.info("Review store connected")
        return self._sessions

    async def save_review(self, review: CodeReview) -> str:
        """Insert a new review row and return its id."""
        sessions = await self._get_sessions()
        row = CodeReviewRow(
            id=review.id,
            created_at=review.created_at,
            code=review.code,
            language=review.language,
            review_type=review.review_type,
            ai_feedback=review.feedback.to_dict(),
            ai_model=review.ai_model,
            user_rating=review.user_rating,
            rated_at=review.rated_at,
        )
        try:
            async with sessions() as session, session.begin():
                session.add(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save review {review.id}: {e}") from e
        return review.id

    async def update_rating(self, review_id: str, rating: int) -> bool:
        """Set (or overwrite) the rating for a review.

        Returns:
            True if a row was updated, False if no review has that id
        """
        rating = coerce_rating(rating)
        sessions = await self._get_sessions()
        stmt = (
            update(CodeReviewRow)
            .where(CodeReviewRow.id == review_id)
            .values(user_rating=rating, rated_at=datetime.now(timezone.utc))
        )
        try:
            async with sessions() as session, session.begin():
                result = await session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update rating for {review_id}: {e}") from e

        if result.rowcount == 0:
            logger.warning(f"Rating for unknown review {review_id} was not stored")
            return False
        return True

    async def get_review(self, review_id: str) -> CodeReview | None:
        """Load a review by id."""
        sessions = await self._get_sessions()
        try:
            async with sessions() as session:
                row = await session.get(CodeReviewRow, review_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load review {review_id}: {e}") from e

        if row is None:
            return None
        return CodeReview(
            id=row.id,
            code=row.code,
            language=row.language,
            review_type=row.review_type,
            feedback=ReviewFeedback.from_dict(row.ai_feedback),
            created_at=row.created_at,
            user_rating=row.user_rating,
            rated_at=row.rated_at,
        )

    async def get_statistics(self) -> RatingStatistics:
        """Summarise ratings for the feedback loop."""
        sessions = await self._get_sessions()
        stmt = select(
            func.count(CodeReviewRow.id),
            func.count(CodeReviewRow.user_rating),
            func.sum(case((CodeReviewRow.user_rating == 1, 1), else_=0)),
            func.sum(case((CodeReviewRow.user_rating == -1, 1), else_=0)),
        )
        try:
            async with sessions() as session:
                total, rated, positive, negative = (await session.execute(stmt)).one()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to compute statistics: {e}") from e

        positive = positive or 0
        negative = negative or 0
        average = (positive - negative) / rated if rated else 0.0
        return RatingStatistics(
            total_reviews=total,
            total_ratings=rated,
            positive_ratings=positive,
            negative_ratings=negative,
            average_rating=average,
        )

    async def close(self) -> None:
        """Dispose of the engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessions = None
