"""
Schema for image upload responses.
"""

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    url: str = Field(..., description="Public URL of the stored file")
