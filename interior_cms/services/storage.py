"""
Supabase Storage service for image uploads.
Stores uploaded files in the public images bucket and returns their public URL.
"""
from typing import Optional
import logging
import mimetypes
import time

from interior_cms.backend import Configured, get_backend
from interior_cms.config import settings
from interior_cms.errors import BackendError, ConfigurationError

logger = logging.getLogger(__name__)


def build_object_path(filename: str, folder: str = "portfolio", timestamp_ms: Optional[int] = None) -> str:
    """
    Build the storage path for an upload: {folder}/{epoch millis}.{original extension}

    Args:
        filename: Original file name, used only for its extension
        folder: Bucket folder (e.g. "portfolio", "hero", "logo")
        timestamp_ms: Override for the timestamp part (defaults to now)

    Returns:
        str: Object path inside the bucket
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    extension = filename.rsplit(".", 1)[-1]
    return f"{folder}/{timestamp_ms}.{extension}"


def upload_image(
    content: bytes,
    filename: str,
    folder: str = "portfolio",
    content_type: Optional[str] = None,
) -> str:
    """
    Upload an image to the storage bucket.
    No file type or size validation is applied here.

    Args:
        content: Raw file bytes
        filename: Original file name (its extension is kept)
        folder: Bucket folder to store the object under
        content_type: MIME type; guessed from the file name when omitted

    Returns:
        str: Public URL of the stored object

    Raises:
        ConfigurationError: If Supabase is not configured
        BackendError: If the upload is rejected
    """
    backend = get_backend()
    if not isinstance(backend, Configured):
        raise ConfigurationError()

    path = build_object_path(filename, folder)
    mime_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
    bucket = backend.client.storage.from_(settings.STORAGE_BUCKET)

    try:
        bucket.upload(path, content, {"content-type": mime_type})
    except Exception as e:
        logger.error(f"Error uploading {filename} to bucket '{settings.STORAGE_BUCKET}': {str(e)}", exc_info=True)
        raise BackendError(message=f"Image upload failed: {str(e)}")

    public_url = bucket.get_public_url(path)
    logger.info(f"Successfully uploaded image: {path} ({len(content):,} bytes)")
    return public_url
