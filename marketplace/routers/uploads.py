"""
Image upload endpoint for listing photos.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from marketplace.models.user import User
from marketplace.services.upload import UploadService
from marketplace.schemas.upload import UploadResponse
from marketplace.schemas.error import get_auth_error_responses, get_error_responses
from marketplace.utils.dependencies import get_upload_service, require_publisher


router = APIRouter(tags=["Uploads"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload a photo",
    description="Upload a JPEG, PNG or WebP image as multipart field 'file'. Requires SELLER or AGENT role.",
    responses={**get_auth_error_responses(), **get_error_responses(400, 422)}
)
async def upload_file(
    file: UploadFile = File(..., description="Image file"),
    current_user: User = Depends(require_publisher),
    upload_service: UploadService = Depends(get_upload_service)
) -> UploadResponse:
    url = await upload_service.upload_image(file, current_user)
    return UploadResponse(url=url)
