"""
Upload service for listing photos uploaded as files.
"""

from fastapi import UploadFile
from marketplace.models.user import User
from marketplace.utils.file_utils import FileValidator, FileStorage
import logging

logger = logging.getLogger(__name__)


class UploadService:
    """Validates an uploaded image, stores it, and returns its public URL."""

    def __init__(self, storage: FileStorage = None):
        self.storage = storage or FileStorage()

    async def upload_image(self, file: UploadFile, current_user: User) -> str:
        """
        Store an image upload.

        Returns:
            Public URL under /uploads

        Raises:
            ValidationError: If the file is not an acceptable image
        """
        content, extension = await FileValidator.validate_upload_file(file)
        filename = await self.storage.save_bytes(content, extension)

        logger.info(f"User {current_user.id} uploaded {file.filename} as {filename} ({len(content)} bytes)")
        return FileStorage.public_url(filename)
