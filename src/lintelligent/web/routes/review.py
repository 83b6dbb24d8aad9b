"""Review submission and rating endpoints."""

import logging
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from lintelligent.models.context import RepoContextRequest
from lintelligent.models.review import CodeReview, is_valid_review_id
from lintelligent.web.deps import AppServices, get_optional_session, get_services
from lintelligent.web.schemas import RatingBody, ReviewRequestBody
from lintelligent.web.session import SessionData

logger = logging.getLogger(__name__)

router = APIRouter()

REVIEW_FAILED_MESSAGE = "Failed to review code. Check server logs for details."


@router.post("")
async def create_review(
    body: ReviewRequestBody,
    session: SessionData | None = Depends(get_optional_session),
    services: AppServices = Depends(get_services),
):
    """Review a snippet, optionally enriched with context from a GitHub repository."""
    language = body.resolved_language
    review_type = body.resolved_review_type

    repo_request = None
    if body.repo_info is not None and body.repo_info.is_complete:
        if session is None or not session.gh_token:
            raise HTTPException(
                status_code=401, detail="GitHub authentication required for repo reviews"
            )
        repo_request = RepoContextRequest(
            owner=body.repo_info.owner,
            repo=body.repo_info.repo,
            ref=body.repo_info.ref,
            file_path=body.repo_info.file_path,
            access_token=session.gh_token,
        )
        logger.info(
            f"Repo review requested for {repo_request.project_id}:{repo_request.file_path}"
            f"@{repo_request.ref}"
        )

    if not services.orchestrator.is_configured:
        logger.error("Review requested but ANTHROPIC_API_KEY is not set")
        return JSONResponse(status_code=500, content={"error": "AI API key not configured"})

    try:
        feedback = await services.orchestrator.review(
            code=body.code,
            language=language,
            review_type=review_type,
            repo_request=repo_request,
        )
    except Exception as e:
        logger.exception(f"Review failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e) or REVIEW_FAILED_MESSAGE})

    created_at = datetime.now(timezone.utc)
    review = CodeReview(
        id=str(uuid4()),
        code=body.code,
        language=language,
        review_type=review_type,
        feedback=feedback,
        created_at=created_at,
    )

    try:
        await services.store.save_review(review)
        logger.info(f"Review saved: {review.id}")
    except Exception as e:
        logger.warning(f"Failed to save review {review.id}: {e}")

    return {
        "id": review.id,
        "feedback": feedback.to_dict(),
        "createdAt": created_at.isoformat(),
    }


@router.patch("/{review_id}/rating")
async def rate_review(
    review_id: str,
    body: RatingBody,
    services: AppServices = Depends(get_services),
):
    """Record a thumbs-up (1) or thumbs-down (-1). Storage is best-effort."""
    if not is_valid_review_id(review_id):
        raise HTTPException(status_code=400, detail="Invalid review ID format")

    try:
        await services.store.update_rating(review_id, body.rating)
        logger.info(f"Rating saved: {review_id} {'+1' if body.rating == 1 else '-1'}")
    except Exception as e:
        logger.warning(f"Failed to save rating for {review_id}: {e}")

    return {"success": True, "message": "Rating received"}
