"""Review result models."""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

UUID_V4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

VALID_RATINGS = (1, -1)


class Severity(Enum):
    """Severity levels for suggestions.

    - HIGH: security risks.
    - MEDIUM: type mismatches, runtime/scope errors, logic errors.
    - LOW: style-only issues.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InvalidRatingError(ValueError):
    """Raised when a rating is not exactly +1 or -1."""


@dataclass(frozen=True)
class ReviewSuggestion:
    """A single line-anchored issue proposed by the model."""

    severity: Severity
    line: int
    message: str
    reason: str
    fixed_code: str = ""

    def __post_init__(self) -> None:
        """Validate suggestion data."""
        if self.line < 1:
            raise ValueError(f"line must be >= 1, got {self.line}")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ReviewSuggestion":
        """Build a suggestion from the model's JSON shape.

        Raises:
            KeyError, ValueError, TypeError: if the entry is malformed
        """
        return cls(
            severity=Severity(str(raw["severity"]).lower()),
            line=int(raw["line"]),
            message=str(raw["message"]),
            reason=str(raw.get("reason") or ""),
            fixed_code=str(raw.get("fixedCode") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "line": self.line,
            "message": self.message,
            "reason": self.reason,
            "fixedCode": self.fixed_code,
        }


@dataclass
class ReviewFeedback:
    """Parsed model output: suggestions, summary and the model that produced them."""

    suggestions: list[ReviewSuggestion]
    summary: str
    ai_model: str

    @property
    def suggestions_by_severity(self) -> dict[Severity, int]:
        """Count suggestions by severity level."""
        counts: dict[Severity, int] = dict.fromkeys(Severity, 0)
        for suggestion in self.suggestions:
            counts[suggestion.severity] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "summary": self.summary,
            "aiModel": self.ai_model,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewFeedback":
        return cls(
            suggestions=[ReviewSuggestion.from_dict(s) for s in data.get("suggestions", [])],
            summary=data.get("summary", ""),
            ai_model=data.get("aiModel", "unknown"),
        )


@dataclass
class CodeReview:
    """A persisted review: submitted code plus model feedback and optional rating."""

    id: str
    code: str
    language: str
    review_type: str
    feedback: ReviewFeedback
    created_at: datetime
    user_rating: int | None = None
    rated_at: datetime | None = None

    @property
    def ai_model(self) -> str:
        return self.feedback.ai_model

    @property
    def is_rated(self) -> bool:
        return self.user_rating is not None


def is_valid_review_id(review_id: str) -> bool:
    """Check that a review id has the UUID v4 shape."""
    return bool(UUID_V4_PATTERN.match(review_id))


def coerce_rating(value: Any) -> int:
    """Coerce a submitted rating to +1 or -1.

    Accepts ints, integral floats and numeric strings ("1", "-1").

    Raises:
        InvalidRatingError: for anything else, including 0, 2, "x" and None
    """
    if value is None or isinstance(value, bool):
        raise InvalidRatingError("Rating must be 1 (thumbs up) or -1 (thumbs down)")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidRatingError("Rating must be 1 (thumbs up) or -1 (thumbs down)") from e
    if number not in VALID_RATINGS:
        raise InvalidRatingError("Rating must be 1 (thumbs up) or -1 (thumbs down)")
    return int(number)
