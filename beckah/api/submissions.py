"""
Submission screening routes.
"""
from typing import Any

from fastapi import APIRouter

from beckah.core.schemas import AutoValidateRequest, ProcessSubmissionRequest
from beckah.services.submissions import auto_validate, process_new_submission

router = APIRouter(tags=["submissions"])


@router.post("/auto-validate-product")
async def auto_validate_product(request: AutoValidateRequest) -> dict[str, Any]:
    """Moderation gate + price suggestion, no database writes."""
    return await auto_validate(request)


@router.post("/process-new-submission")
async def process_submission(request: ProcessSubmissionRequest) -> dict[str, Any]:
    """Screen a stored submission, then flag it or publish it."""
    return await process_new_submission(request.submission_id)
