"""Profile change event endpoints for push-style event sources."""

from fastapi import APIRouter, Depends, status

from app.dependencies import get_regenerator
from app.models.events import ProfileChangeEvent, RegenerationResult
from app.schemas.event_schema import ProfileChangeRequest
from app.schemas.responses import ApiResponse
from app.services.regeneration import StoryRegenerator
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/children/{child_id}",
    response_model=ApiResponse[RegenerationResult],
    status_code=status.HTTP_200_OK,
    summary="Process a child profile change",
)
async def child_profile_changed(
    child_id: str,
    request: ProfileChangeRequest,
    regenerator: StoryRegenerator = Depends(get_regenerator),
) -> ApiResponse[RegenerationResult]:
    """
    Regenerate or remove a child's stories after the profile was written.

    The event counts as processed even when writes fail; the result
    reports the failure.
    """
    event = ProfileChangeEvent(child_id=child_id, before=request.before, after=request.after)
    result = await regenerator.handle(event)

    if result.success:
        return ApiResponse(success=True, data=result, message="Processed")

    return ApiResponse(
        success=False,
        data=result,
        message="Processed with errors",
        errors=[{"code": "REGENERATION_FAILED", "message": result.error}],
    )
