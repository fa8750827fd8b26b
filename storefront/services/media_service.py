import asyncio
from typing import Optional

import cloudinary
import cloudinary.uploader

from storefront.utils.logger import logger

PLACEHOLDER_MARKERS = ("your_", "replace", "changeme", "example")


def looks_like_placeholder(value: str) -> bool:
    lowered = str(value).lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def public_id_from_url(image_url: str) -> str:
    """https://res.cloudinary.com/x/image/upload/v1/products/abc.jpg -> abc"""
    return image_url.rstrip("/").split("/")[-1].split(".")[0]


class MediaService:
    """Product image storage on Cloudinary"""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.options = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "secure": True
        }

    @property
    def is_configured(self) -> bool:
        credentials = (self.cloud_name, self.api_key, self.api_secret)
        if not all(credentials):
            return False
        return not any(looks_like_placeholder(value) for value in credentials)

    async def upload(self, image: str, folder: str = "products") -> Optional[str]:
        """
        Upload an image (URL or base64 data URI) and return its secure URL.
        Returns None when the upload fails.
        """
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                image,
                folder=folder,
                resource_type="image",
                **self.options
            )
            return result.get("secure_url")
        except Exception as e:
            logger.error(f"Cloudinary upload failed: {e}")
            return None

    async def destroy(self, image_url: str, folder: str = "products") -> bool:
        public_id = f"{folder}/{public_id_from_url(image_url)}"
        try:
            result = await asyncio.to_thread(cloudinary.uploader.destroy, public_id, **self.options)
            logger.info(f"Deleted image {public_id} from Cloudinary: {result.get('result')}")
            return result.get("result") == "ok"
        except Exception as e:
            logger.error(f"Error deleting image {public_id} from Cloudinary: {e}")
            return False
