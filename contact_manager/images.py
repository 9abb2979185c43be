"""Contact picture uploads to Cloudinary."""

import logging
from typing import BinaryIO

import cloudinary
import cloudinary.uploader

from .core import get_settings
from .exceptions import ImageUploadError

logger = logging.getLogger(__name__)

settings = get_settings()

if settings.CLOUDINARY_URL:
    cloudinary.config(cloudinary_url=settings.CLOUDINARY_URL)


class ImageService:
    """Stores contact pictures and returns their public URLs."""

    folder = "contacts"

    def upload_image(self, file: BinaryIO, public_id: str) -> str:
        """
        Upload an image under the given public id.

        Args:
            file (BinaryIO): Image content.
            public_id (str): Identifier the image is stored under.

        Raises:
            ImageUploadError: If Cloudinary is not configured or returns no URL.

        Returns:
            str: Secure URL of the uploaded image.
        """
        if not settings.CLOUDINARY_URL:
            raise ImageUploadError(
                "Cloudinary is not configured",
                "Picture upload is not available right now.",
            )

        upload_result = cloudinary.uploader.upload(
            file, folder=self.folder, public_id=public_id
        )
        image_url = upload_result.get("secure_url")
        if not image_url:
            raise ImageUploadError(
                f"Upload of {public_id} returned no URL",
                "Failed to upload picture.",
            )
        logger.info("Uploaded contact picture %s", public_id)
        return image_url


def get_image_service() -> ImageService:
    """FastAPI dependency returning the image service."""
    return ImageService()
