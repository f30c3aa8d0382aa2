"""
Event image hosting: store bytes, return a retrievable URL
"""

import logging
import os
import uuid
from typing import Optional

from google.api_core.exceptions import GoogleAPIError

from devevents.core.config import settings
from devevents.core.exceptions import AssetUploadError, ValidationError
from devevents.services.firebase_client import get_storage_bucket

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "events"

# Stored extension comes from the checked content type, never the client filename
IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def validate_image(content: bytes, content_type: Optional[str]) -> None:
    if not content:
        raise ValidationError("Image file is empty")
    if content_type not in IMAGE_EXTENSIONS:
        raise ValidationError(f"Invalid image type: {content_type}")
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(f"Image exceeds the {settings.MAX_UPLOAD_SIZE} byte upload limit")


def _object_name(content_type: str) -> str:
    return f"{IMAGE_FOLDER}/{uuid.uuid4().hex}{IMAGE_EXTENSIONS[content_type]}"


class FirebaseStorageUploader:
    """Uploads images to the configured Firebase Storage bucket"""

    def __init__(self, bucket=None):
        self.bucket = bucket or get_storage_bucket()

    def upload(self, content: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> str:
        validate_image(content, content_type)
        blob = self.bucket.blob(_object_name(content_type))
        try:
            blob.upload_from_string(content, content_type=content_type)
            blob.make_public()
        except GoogleAPIError as e:
            logger.error(f"Image upload to bucket {self.bucket.name} failed: {e}")
            raise AssetUploadError() from e
        logger.info(f"Image uploaded: {blob.name}")
        return blob.public_url


class LocalAssetUploader:
    """Saves images under UPLOAD_DIR, served by the /uploads static mount"""

    def __init__(self, upload_dir: Optional[str] = None, base_url: Optional[str] = None):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        self.base_url = (base_url or settings.BASE_URL).rstrip("/")

    def upload(self, content: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> str:
        validate_image(content, content_type)
        name = _object_name(content_type)
        path = os.path.join(self.upload_dir, name)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Saving image to {path} failed: {e}")
            raise AssetUploadError() from e
        logger.info(f"Image saved: {path}")
        return f"{self.base_url}/uploads/{name}"


def get_asset_uploader():
    """FastAPI dependency selecting the configured asset host"""
    if settings.FIREBASE_STORAGE_BUCKET:
        return FirebaseStorageUploader()
    return LocalAssetUploader()
