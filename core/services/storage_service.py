# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles business image uploads to Supabase Storage.
#
# The portal sends images as base64 (optionally as a data URL). Each upload
# gets a unique path so CDN caches never serve a replaced image:
#   businesses/{business_id}/{image_type}-{uuid}.{ext}
# =============================================================================

import base64
import binascii
import logging
import re
import uuid

from lib.supabase_client import SupabaseClient
from core.models.business import ImageType
from app.config import settings
from app.exceptions import ImageTooLargeError, InvalidImageError, StorageUploadError

logger = logging.getLogger(__name__)

# data:image/png;base64,<payload>
_DATA_URL_PATTERN = re.compile(r"^data:(?P<type>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


def decode_image_data(file_data: str, content_type: str | None = None) -> tuple[bytes, str]:
    """
    Decode base64 image data.

    Args:
        file_data: Raw base64 or a data URL
        content_type: Declared type; a data URL's own type takes precedence

    Returns:
        (image bytes, lowercase content type)

    Raises:
        InvalidImageError: Not base64, or no content type
    """
    allowed = settings.allowed_image_types_list
    payload = file_data.strip()

    match = _DATA_URL_PATTERN.match(payload)
    if match:
        content_type = match.group("type")
        payload = match.group("data")

    if not content_type:
        raise InvalidImageError("content type is required", allowed=allowed)

    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidImageError("file_data is not valid base64", allowed=allowed)

    if not content:
        raise InvalidImageError("file is empty", allowed=allowed)

    return content, content_type.lower()


class StorageService:
    """
    Service for Supabase Storage operations.

    Handles validating and uploading business images.
    """

    @staticmethod
    def validate_image(content: bytes, content_type: str) -> None:
        """
        Check type and size limits.

        Raises:
            InvalidImageError: If the content type isn't allowed
            ImageTooLargeError: If the image exceeds MAX_IMAGE_SIZE_MB
        """
        allowed = settings.allowed_image_types_list
        if content_type not in allowed:
            raise InvalidImageError(f"type {content_type} is not allowed", allowed=allowed)

        if len(content) > settings.max_image_size_bytes:
            raise ImageTooLargeError(len(content) / (1024 * 1024), settings.MAX_IMAGE_SIZE_MB)

    @staticmethod
    def build_image_path(business_id: str, image_type: ImageType, content_type: str) -> str:
        extension = _EXTENSIONS.get(content_type, content_type.split("/")[-1])
        return f"businesses/{business_id}/{image_type.value}-{uuid.uuid4().hex}.{extension}"

    @staticmethod
    def upload_image(
        business_id: str,
        image_type: ImageType,
        content: bytes,
        content_type: str,
    ) -> dict[str, str]:
        """
        Upload an image to the image bucket.

        Args:
            business_id: Business UUID
            image_type: logo or cover
            content: Image bytes
            content_type: MIME type

        Returns:
            Dict with storage path and public url

        Raises:
            InvalidImageError / ImageTooLargeError: If validation fails
            StorageUploadError: If upload fails
        """
        StorageService.validate_image(content, content_type)

        client = SupabaseClient.get_client()
        path = StorageService.build_image_path(business_id, image_type, content_type)
        bucket = client.storage.from_(settings.IMAGE_BUCKET)

        try:
            bucket.upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

        url = bucket.get_public_url(path)
        logger.info(f"Uploaded {image_type.value} image for business {business_id}: {path}")
        return {"path": path, "url": url}

    @staticmethod
    def delete_file(storage_path: str) -> bool:
        """
        Delete a file from the image bucket.

        Returns:
            True if deleted successfully
        """
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(settings.IMAGE_BUCKET).remove([storage_path])
            logger.info(f"Deleted file from storage: {storage_path}")
            return True

        except Exception as e:
            logger.error(f"Failed to delete file: {e}")
            return False
