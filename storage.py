from __future__ import annotations
import io
import logging
import uuid
from pathlib import Path
from typing import Optional, Protocol

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from config import Settings, settings
from errors import StoreError, UploadError

logger = logging.getLogger(__name__)

ALLOWED_FORMATS = ["jpg", "jpeg", "png", "webp"]
# Local files are named from the validated content type, never the client filename
EXTENSIONS = {"image/jpeg": ".jpg", "image/jpg": ".jpg", "image/png": ".png", "image/webp": ".webp"}
TRANSFORMATION = [
    {"width": 800, "height": 600, "crop": "fill"},
    {"quality": "auto", "fetch_format": "auto"},
]
CHUNK_SIZE = 64 * 1024


class ImageStorage(Protocol):
    name: str

    async def store(self, upload: UploadFile) -> str: ...


async def read_image(upload: UploadFile, max_size: int) -> bytes:
    """Return the upload's bytes, rejecting non-images and oversized payloads."""
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise UploadError("Only image files are allowed!")

    data = bytearray()
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        data.extend(chunk)
        if len(data) > max_size:
            raise UploadError(f"File too large. Maximum size is {max_size / (1024 * 1024):g}MB.")
    return bytes(data)


class LocalImageStorage:
    """Writes uploads under ``upload_dir``; main.py serves that directory at /uploads."""

    name = "local"

    def __init__(self, upload_dir: str, base_url: str = "", max_size: int = 5 * 1024 * 1024):
        self.upload_dir = Path(upload_dir)
        self.base_url = base_url.rstrip("/")
        self.max_size = max_size

    def _extension(self, upload: UploadFile) -> str:
        extension = EXTENSIONS.get((upload.content_type or "").lower())
        if extension is None:
            raise UploadError(f"Image format not allowed. Use one of: {', '.join(ALLOWED_FORMATS)}")
        return extension

    async def store(self, upload: UploadFile) -> str:
        data = await read_image(upload, self.max_size)
        filename = f"{uuid.uuid4().hex}{self._extension(upload)}"
        path = self.upload_dir / filename

        def _write() -> None:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await run_in_threadpool(_write)
        logger.info("Stored image %s (%d bytes)", path, len(data))
        return f"{self.base_url}/uploads/{filename}"


class CloudinaryImageStorage:
    """Uploads to Cloudinary with the storefront's resize/format pipeline."""

    name = "cloudinary"

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str, max_size: int = 5 * 1024 * 1024):
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)
        self.folder = folder
        self.max_size = max_size

    async def store(self, upload: UploadFile) -> str:
        data = await read_image(upload, self.max_size)
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                folder=self.folder,
                allowed_formats=ALLOWED_FORMATS,
                transformation=TRANSFORMATION,
                resource_type="image",
            )
        except CloudinaryError as exc:
            raise StoreError(f"Image upload failed: {exc}") from exc
        url = result["secure_url"]
        logger.info("Uploaded image to Cloudinary: %s", url)
        return url


def build_image_storage(config: Settings) -> ImageStorage:
    backend = config.IMAGE_STORAGE_BACKEND.lower()
    if backend == "cloudinary":
        return CloudinaryImageStorage(
            config.CLOUDINARY_CLOUD_NAME,
            config.CLOUDINARY_API_KEY,
            config.CLOUDINARY_API_SECRET,
            config.CLOUDINARY_FOLDER,
            max_size=config.MAX_UPLOAD_SIZE,
        )
    if backend == "local":
        return LocalImageStorage(config.UPLOAD_DIR, config.PUBLIC_BASE_URL, max_size=config.MAX_UPLOAD_SIZE)
    raise ValueError(f"Unknown IMAGE_STORAGE_BACKEND: {config.IMAGE_STORAGE_BACKEND}")


_storage: Optional[ImageStorage] = None


def get_image_storage() -> ImageStorage:
    """FastAPI dependency returning the configured backend."""
    global _storage
    if _storage is None:
        _storage = build_image_storage(settings)
    return _storage
