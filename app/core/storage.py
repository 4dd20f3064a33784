# core/storage.py
from django.core.files.storage import default_storage
import logging
import os
import uuid
from typing import Optional

logger = logging.getLogger(__name__)


class MediaUploadError(Exception):
    """Raised when an uploaded file cannot be stored"""
    pass


class MediaStorageGateway:
    """
    Stores user supplied files (doctor photos, patient ID documents) through
    Django's storage API and hands back a public URL.
    """

    ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.gif', '.pdf'}
    MAX_UPLOAD_BYTES = 10 * 1024 * 1024

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def upload(self, file, folder: str) -> str:
        """
        Save an uploaded file under folder/ with a random name.

        Returns:
            URL of the stored file

        Raises:
            MediaUploadError: unsupported file or storage failure
        """
        extension = os.path.splitext(file.name or '')[1].lower()
        if extension not in self.ALLOWED_EXTENSIONS:
            raise MediaUploadError(f"Unsupported file type '{extension or 'unknown'}'")

        if file.size is not None and file.size > self.MAX_UPLOAD_BYTES:
            raise MediaUploadError("File is too large")

        name = f"{folder.strip('/')}/{uuid.uuid4().hex}{extension}"

        try:
            saved_name = self.storage.save(name, file)
            url = self.storage.url(saved_name)
        except Exception as e:
            logger.error(f"Failed to store upload in '{folder}': {str(e)}")
            raise MediaUploadError(f"Failed to store file: {str(e)}")

        logger.info(f"Stored upload {saved_name}")
        return url

    def close(self) -> None:
        logger.debug("Media storage gateway closed")


_media_storage_gateway: Optional[MediaStorageGateway] = None


def get_media_storage_gateway() -> MediaStorageGateway:
    global _media_storage_gateway
    if _media_storage_gateway is None:
        _media_storage_gateway = MediaStorageGateway()
    return _media_storage_gateway


def reset_media_storage_gateway() -> None:
    global _media_storage_gateway
    if _media_storage_gateway is not None:
        _media_storage_gateway.close()
    _media_storage_gateway = None
