"""
Service configuration

All environment lookups happen here, once, at process start. The resulting
Settings object is passed to create_app() and handed to everything that needs it.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


# Produksjons-origins (alltid tillatt)
PRODUCTION_ORIGINS = [
    "https://www.connectingdotserp.com",
    "https://connectingdotserp.com",
    "https://blog-frontend-psi-bay.vercel.app",
]

# Development origins (kun i dev-miljø)
DEV_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "https://localhost:3000",
]

TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in TRUE_VALUES


def _env_list(name: str) -> Optional[list[str]]:
    value = os.getenv(name)
    if not value:
        return None
    return [item.strip().rstrip("/") for item in value.split(",") if item.strip()]


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


class Settings(BaseModel):
    """Runtime configuration for the blog service."""

    environment: str = "development"
    port: int = 5002
    log_level: str = "INFO"

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "blogs"
    mongo_collection: str = "blogs"

    # CORS
    allowed_origins: list[str] = Field(default_factory=lambda: list(PRODUCTION_ORIGINS))

    # Attachments
    storage_backend: str = "local"
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    cloudinary_folder: str = "blog-images"
    upload_dir: str = "uploads"
    upload_base_url: str = "/uploads"
    max_upload_size: int = 10 * 1024 * 1024  # 10 MB

    # Validation
    require_subcategory: bool = True

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        environment = os.getenv("ENVIRONMENT", "development")

        origins = _env_list("ALLOWED_ORIGINS") or list(PRODUCTION_ORIGINS)

        # Legg til FRONTEND_URL fra env hvis satt
        frontend_url = os.getenv("FRONTEND_URL")
        if frontend_url:
            clean_url = frontend_url.rstrip("/")
            if clean_url not in origins:
                origins.append(clean_url)

        # Legg til dev-origins hvis ikke i produksjon
        if environment != "production":
            origins.extend(o for o in DEV_ORIGINS if o not in origins)

        cloud_name = os.getenv("CLOUDINARY_CLOUD_NAME")
        api_key = os.getenv("CLOUDINARY_API_KEY")
        api_secret = os.getenv("CLOUDINARY_API_SECRET")
        default_backend = "cloudinary" if (cloud_name and api_key and api_secret) else "local"

        return cls(
            environment=environment,
            port=_env_int("BLOG_PORT", 5002),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
            mongo_database=os.getenv("MONGO_DATABASE", "blogs"),
            mongo_collection=os.getenv("MONGO_COLLECTION", "blogs"),
            allowed_origins=origins,
            storage_backend=os.getenv("STORAGE_BACKEND", default_backend).lower(),
            cloudinary_cloud_name=cloud_name,
            cloudinary_api_key=api_key,
            cloudinary_api_secret=api_secret,
            cloudinary_folder=os.getenv("CLOUDINARY_FOLDER", "blog-images"),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            upload_base_url=os.getenv("UPLOAD_BASE_URL", "/uploads").rstrip("/"),
            max_upload_size=_env_int("MAX_UPLOAD_SIZE", 10 * 1024 * 1024),
            require_subcategory=_env_bool("REQUIRE_SUBCATEGORY", True),
        )
