"""
File upload utilities for image validation and storage.
"""

import io
import secrets
import time
from pathlib import Path
from typing import Tuple, Optional
from PIL import Image, UnidentifiedImageError
import aiofiles
from fastapi import UploadFile

from marketplace.config import settings
from marketplace.utils.exceptions import ValidationError, UnsupportedFileTypeError, FileSizeExceededError


class FileValidator:
    """Utility class for image upload validation."""

    # Supported image formats and their extensions
    SUPPORTED_FORMATS = {
        "image/jpeg": [".jpg", ".jpeg"],
        "image/png": [".png"],
        "image/webp": [".webp"],
    }

    # PIL format names per MIME type
    PIL_FORMATS = {
        "image/jpeg": "jpeg",
        "image/png": "png",
        "image/webp": "webp",
    }

    MIN_WIDTH = 100
    MIN_HEIGHT = 100
    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000
    READ_CHUNK_SIZE = 64 * 1024

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension.

        Returns:
            Lowercase file extension including the dot

        Raises:
            ValidationError: If extension is missing or not supported
        """
        if not filename:
            raise ValidationError("Filename is required")

        extension = Path(filename).suffix.lower()
        if not extension:
            raise ValidationError("File must have an extension")

        supported_extensions = [ext for exts in cls.SUPPORTED_FORMATS.values() for ext in exts]
        if extension not in supported_extensions:
            raise ValidationError(
                f"File extension '{extension}' not supported. "
                f"Supported extensions: {', '.join(supported_extensions)}"
            )

        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: str) -> str:
        allowed = [t for t in settings.allowed_file_types if t in cls.SUPPORTED_FORMATS]
        if mime_type not in allowed:
            raise UnsupportedFileTypeError(mime_type or "unknown", allowed)
        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        if file_size <= 0:
            raise ValidationError("File is empty")

        max_allowed = max_size or settings.max_file_size
        if file_size > max_allowed:
            raise FileSizeExceededError(file_size, max_allowed)

        return file_size

    @classmethod
    def validate_image_dimensions(cls, width: int, height: int) -> Tuple[int, int]:
        """
        Validate image dimensions against the configured bounds.

        Raises:
            ValidationError: If dimensions are out of range
        """
        if width < cls.MIN_WIDTH:
            raise ValidationError(f"Image width ({width}px) is below minimum ({cls.MIN_WIDTH}px)")
        if height < cls.MIN_HEIGHT:
            raise ValidationError(f"Image height ({height}px) is below minimum ({cls.MIN_HEIGHT}px)")
        if width > cls.MAX_WIDTH:
            raise ValidationError(f"Image width ({width}px) exceeds maximum ({cls.MAX_WIDTH}px)")
        if height > cls.MAX_HEIGHT:
            raise ValidationError(f"Image height ({height}px) exceeds maximum ({cls.MAX_HEIGHT}px)")
        return width, height

    @classmethod
    async def read_limited(cls, file: UploadFile, max_size: Optional[int] = None) -> bytes:
        """
        Read an upload in chunks, stopping as soon as it exceeds the size limit.

        Raises:
            FileSizeExceededError: If more than ``max_size`` bytes arrive
        """
        max_allowed = max_size or settings.max_file_size
        await file.seek(0)

        chunks = []
        received = 0
        while True:
            chunk = await file.read(cls.READ_CHUNK_SIZE)
            if not chunk:
                break
            received += len(chunk)
            if received > max_allowed:
                raise FileSizeExceededError(received, max_allowed)
            chunks.append(chunk)
        return b"".join(chunks)

    @classmethod
    async def validate_upload_file(cls, file: UploadFile) -> Tuple[bytes, str]:
        """
        Validate an uploaded image and return its content.

        Returns:
            Tuple of (content, extension)

        Raises:
            ValidationError: If any check fails
        """
        extension = cls.validate_file_extension(file.filename or "")
        mime_type = cls.validate_mime_type(file.content_type or "")

        if extension not in cls.SUPPORTED_FORMATS[mime_type]:
            raise ValidationError(f"File extension '{extension}' doesn't match MIME type '{mime_type}'")

        content = await cls.read_limited(file)
        cls.validate_file_size(len(content))

        try:
            with Image.open(io.BytesIO(content)) as img:
                pil_format = (img.format or "").lower()
                width, height = img.size
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"Invalid image file: {e}")

        if pil_format != cls.PIL_FORMATS[mime_type]:
            raise ValidationError(f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'")

        cls.validate_image_dimensions(width, height)
        return content, extension


class FileStorage:
    """Stores uploads under the configured directory with collision-free names."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)

    def generate_unique_filename(self, extension: str) -> str:
        """<milliseconds>-<random><ext>, e.g. 1718000000000-k3j9x2ab.png"""
        return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{extension}"

    async def save_bytes(self, content: bytes, extension: str) -> str:
        """
        Write content to a new file.

        Returns:
            The stored file name

        Raises:
            ValidationError: If the file cannot be written
        """
        self.base_dir.mkdir(parents=True, exist_ok=True)
        filename = self.generate_unique_filename(extension)
        file_path = self.base_dir / filename

        try:
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            file_path.unlink(missing_ok=True)
            raise ValidationError(f"Failed to save file: {e}")

        return filename

    @staticmethod
    def public_url(filename: str) -> str:
        return f"{settings.public_base_url}/uploads/{filename}"
