"""Request bodies for the review API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from lintelligent.models.review import coerce_rating

DEFAULT_LANGUAGE = "javascript"
DEFAULT_REVIEW_TYPE = "best-practices"


class RepoInfo(BaseModel):
    """Reference to a file in a GitHub repository."""

    model_config = ConfigDict(populate_by_name=True)

    owner: StrictStr | None = None
    repo: StrictStr | None = None
    ref: StrictStr | None = None
    file_path: StrictStr | None = Field(None, alias="filePath")

    @property
    def is_complete(self) -> bool:
        """Only a full owner/repo/ref/filePath reference enables repo context."""
        return all((self.owner, self.repo, self.ref, self.file_path))


class ReviewRequestBody(BaseModel):
    """POST /api/review body."""

    model_config = ConfigDict(populate_by_name=True)

    code: StrictStr = Field(min_length=1)
    language: StrictStr | None = None
    review_type: StrictStr | None = Field(None, alias="reviewType")
    repo_info: RepoInfo | None = Field(None, alias="repoInfo")

    @property
    def resolved_language(self) -> str:
        return self.language or DEFAULT_LANGUAGE

    @property
    def resolved_review_type(self) -> str:
        return self.review_type or DEFAULT_REVIEW_TYPE


class RatingBody(BaseModel):
    """PATCH /api/review/{id}/rating body."""

    rating: int

    @field_validator("rating", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> int:
        return coerce_rating(value)
