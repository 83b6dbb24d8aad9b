"""Data models for Lintelligent."""

from lintelligent.models.context import ProjectContext, RelatedFile, RepoContextRequest
from lintelligent.models.review import (
    CodeReview,
    InvalidRatingError,
    ReviewFeedback,
    ReviewSuggestion,
    Severity,
    coerce_rating,
    is_valid_review_id,
)

__all__ = [
    "CodeReview",
    "InvalidRatingError",
    "ProjectContext",
    "RelatedFile",
    "RepoContextRequest",
    "ReviewFeedback",
    "ReviewSuggestion",
    "Severity",
    "coerce_rating",
    "is_valid_review_id",
]
