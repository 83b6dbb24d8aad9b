"""Review orchestration for Lintelligent."""

from lintelligent.review.orchestrator import ReviewConfigurationError, ReviewOrchestrator
from lintelligent.review.reviewer import CodeReviewer, parse_review_response

__all__ = [
    "CodeReviewer",
    "ReviewConfigurationError",
    "ReviewOrchestrator",
    "parse_review_response",
]
