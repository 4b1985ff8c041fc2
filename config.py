from __future__ import annotations
import os
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from the environment or a .env file"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = Field(
        "mongodb://localhost:27017",
        validation_alias=AliasChoices("DATABASE_URL", "MONGODB_URI"),
    )
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "storefront")

    # Image uploads
    IMAGE_STORAGE_BACKEND: str = "local"  # local | cloudinary
    UPLOAD_DIR: str = "uploads"
    PUBLIC_BASE_URL: str = ""
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB

    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_FOLDER: str = "storefront-products"

    # HTTP
    ALLOWED_ORIGINS: List[str] = ["*"]
    ENVIRONMENT: str = "development"
    PORT: int = 5000

    LOG_LEVEL: str = "INFO"

    @property
    def cloudinary_configured(self) -> bool:
        return bool(self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET)


settings = Settings()
