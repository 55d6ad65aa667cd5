import base64
import logging
import re
import time
from typing import Optional, Tuple

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import UploadFile

from core.config import settings
from core.errors import ValidationError

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)
_VERSION_SEGMENT = re.compile(r"^v\d+/")


def to_data_uri(file_data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(file_data).decode('ascii')}"


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into (content_type, bytes); ValueError when malformed."""
    match = _DATA_URI.match(uri)
    if not match:
        raise ValueError("Invalid base64 data URI")
    return match.group(1), base64.b64decode(match.group(2))


def public_id_from_url(url: str) -> Optional[str]:
    if "/upload/" not in url:
        return None
    path = url.split("/upload/", 1)[1]
    path = _VERSION_SEGMENT.sub("", path)
    return path.rsplit(".", 1)[0] if "." in path.rsplit("/", 1)[-1] else path


class ImageStorage:
    """
    Stores entity images.

    With Cloudinary credentials the bytes are uploaded under a per-entity key
    prefix (``brands/3``, ``products/7/gallery``) and the public URL is
    returned. Without them the image is kept inline as a data URI.
    """

    def __init__(self, cloud_name: str = "", api_key: str = "", api_secret: str = ""):
        self.cloud_name = cloud_name
        self.configured = bool(cloud_name and api_key and api_secret)
        if self.configured:
            cloudinary.config(
                cloud_name=cloud_name,
                api_key=api_key,
                api_secret=api_secret,
                secure=True
            )

    @property
    def base_url(self) -> str:
        return f"https://res.cloudinary.com/{self.cloud_name}/"

    def store(self, file_data: bytes, content_type: str, key_prefix: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Store an image.

        Returns:
            Tuple of (success: bool, url: Optional[str], error: Optional[str])
        """
        if not self.configured:
            return True, to_data_uri(file_data, content_type), None

        public_id = f"{key_prefix.strip('/')}/{int(time.time() * 1000)}"
        try:
            result = cloudinary.uploader.upload(
                file_data,
                public_id=public_id,
                overwrite=True,
                resource_type="image",
            )
            return True, result.get("secure_url"), None
        except CloudinaryError as e:
            logger.warning("Upload of %s failed: %s", public_id, e)
            return False, None, str(e)
        except Exception as e:
            logger.warning("Upload of %s failed: %s", public_id, e)
            return False, None, f"Unexpected error: {str(e)}"

    def is_managed(self, url: Optional[str]) -> bool:
        return bool(self.configured and url and url.startswith(self.base_url))

    def delete(self, url: Optional[str]) -> bool:
        """Best-effort removal of an asset we uploaded; failures are logged, never raised."""
        if not self.is_managed(url):
            return False
        public_id = public_id_from_url(url)
        if not public_id:
            return False
        try:
            result = cloudinary.uploader.destroy(public_id)
        except Exception as e:
            logger.warning("Could not delete superseded image %s: %s", public_id, e)
            return False
        # Cloudinary returns {"result": "ok"} or {"result": "not found"}
        return result.get("result") in ("ok", "not found")


async def read_image_upload(file: Optional[UploadFile]) -> Tuple[bytes, str]:
    if file is None:
        raise ValidationError("No image provided")
    if not file.content_type or not file.content_type.startswith("image/"):
        raise ValidationError("File must be an image")
    file_data = await file.read()
    if not file_data:
        raise ValidationError("No image provided")
    if len(file_data) > settings.IMAGE_MAX_BYTES:
        raise ValidationError(f"File size must be less than {settings.IMAGE_MAX_BYTES // (1024 * 1024)}MB")
    return file_data, file.content_type


# Global instance
image_storage = ImageStorage(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
)


def get_image_storage() -> ImageStorage:
    return image_storage
