from dotenv import load_dotenv
from os import getenv

load_dotenv()

DEFAULT_FOLDER_PRIORITY = (
    "hero",
    "gallery",
    "team",
    "article",
    "service",
    "logo",
    "video-thumbnail",
)
DEFAULT_VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".avi", ".wmv", ".flv", ".mkv")


def _csv(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def _float(value: str | None, default: float) -> float:
    if not value:
        return default
    return float(value)


# How to use:
# Build collaborators from a Settings instance in the composition root
# (sitemedia.api.dependencies.build_container), e.g. settings.CLOUDINARY_CLOUD_NAME
class Settings:
    PROJECT_NAME: str = "sitemedia"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    def __init__(self) -> None:
        self.SUPABASE_URL: str | None = getenv("SUPABASE_URL")
        self.SUPABASE_SERVICE_ROLE_KEY: str | None = getenv("SUPABASE_SERVICE_ROLE_KEY")

        self.CLOUDINARY_CLOUD_NAME: str = getenv("CLOUDINARY_CLOUD_NAME", "demo")
        self.CLOUDINARY_API_KEY: str | None = getenv("CLOUDINARY_API_KEY")
        self.CLOUDINARY_API_SECRET: str | None = getenv("CLOUDINARY_API_SECRET")
        self.CLOUDINARY_DELIVERY_HOST: str = getenv("CLOUDINARY_DELIVERY_HOST", "res.cloudinary.com")
        self.CLOUDINARY_ADMIN_HOST: str = getenv("CLOUDINARY_ADMIN_HOST", "api.cloudinary.com")
        self.CLOUDINARY_DEFAULT_VERSION: str | None = getenv("CLOUDINARY_DEFAULT_VERSION") or None

        self.SITE_URL: str = getenv("SITE_URL", "")
        self.MEDIA_ASSETS_ENDPOINT: str = getenv("MEDIA_ASSETS_ENDPOINT", "/api/site/media-assets")
        self.STATIC_REGISTRY_PATH: str | None = getenv("STATIC_REGISTRY_PATH") or None
        self.HTTP_TIMEOUT_SECONDS: float = _float(getenv("HTTP_TIMEOUT_SECONDS"), 10.0)

        self.FOLDER_PRIORITY: tuple[str, ...] = _csv(getenv("FOLDER_PRIORITY"), DEFAULT_FOLDER_PRIORITY)
        self.VIDEO_EXTENSIONS: tuple[str, ...] = tuple(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in _csv(getenv("VIDEO_EXTENSIONS"), DEFAULT_VIDEO_EXTENSIONS)
        )
        self.FALLBACK_IMAGE_URL: str = getenv(
            "FALLBACK_IMAGE_URL", "/images/global/placeholder-image.jpg"
        )

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY)

    @property
    def cloudinary_admin_configured(self) -> bool:
        return bool(self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET)


settings = Settings()
