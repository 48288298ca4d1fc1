from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os

from gallerysync.exceptions import ConfigError

# === CLOUDKIT ===
DEFAULT_CONTAINER = "iCloud.lucaspfeiffer.sun"
DEFAULT_ENVIRONMENT = "production"
DEFAULT_RECORD_TYPE = "SunPhoto"
API_ROOT = "https://api.apple-cloudkit.com/database/1"

# === LOCAL LAYOUT (relative to the project root) ===
PHOTOS_DIR = Path("photos")
THUMBNAILS_DIR = PHOTOS_DIR / "thumbnails"
FULL_DIR = PHOTOS_DIR / "full"
MANIFEST_FILE = Path("photos.json")
IMAGE_EXTENSION = "webp"

# === ENCODING ===
DEFAULT_THUMBNAIL_QUALITY = 80
DEFAULT_IMAGE_QUALITY = 90
PAGE_SIZE = 100


@dataclass(frozen=True)
class SyncConfig:
    """Settings for one sync run, built once at startup and passed down."""

    api_token: str
    container: str = DEFAULT_CONTAINER
    environment: str = DEFAULT_ENVIRONMENT
    record_type: str = DEFAULT_RECORD_TYPE
    project_root: Path = Path(".")
    thumbnail_quality: int = DEFAULT_THUMBNAIL_QUALITY
    image_quality: int = DEFAULT_IMAGE_QUALITY
    page_size: int = PAGE_SIZE
    request_timeout: float = 30.0

    @property
    def api_base(self) -> str:
        return f"{API_ROOT}/{self.container}/{self.environment}/public"

    @property
    def query_url(self) -> str:
        return f"{self.api_base}/records/query"

    @property
    def thumbnails_dir(self) -> Path:
        return self.project_root / THUMBNAILS_DIR

    @property
    def full_dir(self) -> Path:
        return self.project_root / FULL_DIR

    @property
    def manifest_path(self) -> Path:
        return self.project_root / MANIFEST_FILE


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {name}: {value}") from exc


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid float for {name}: {value}") from exc


def _quality(environ: Mapping[str, str], name: str, default: int) -> int:
    quality = _env_int(environ, name, default)
    if not 0 <= quality <= 100:
        raise ConfigError(f"{name} must be between 0 and 100, got {quality}")
    return quality


def load_config(environ: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """
    Build the run configuration from the process environment.
    CLOUDKIT_API_TOKEN is required; everything else has a default.
    """
    if environ is None:
        environ = os.environ

    token = environ.get("CLOUDKIT_API_TOKEN", "").strip()
    if not token:
        raise ConfigError("CLOUDKIT_API_TOKEN environment variable is required")

    timeout = _env_float(environ, "HTTP_TIMEOUT_SECONDS", 30.0)
    if timeout <= 0:
        raise ConfigError(f"HTTP_TIMEOUT_SECONDS must be positive, got {timeout}")

    return SyncConfig(
        api_token=token,
        container=environ.get("CLOUDKIT_CONTAINER") or DEFAULT_CONTAINER,
        environment=environ.get("CLOUDKIT_ENVIRONMENT") or DEFAULT_ENVIRONMENT,
        record_type=environ.get("CLOUDKIT_RECORD_TYPE") or DEFAULT_RECORD_TYPE,
        project_root=Path(environ.get("GALLERY_ROOT") or "."),
        thumbnail_quality=_quality(environ, "THUMBNAIL_QUALITY", DEFAULT_THUMBNAIL_QUALITY),
        image_quality=_quality(environ, "IMAGE_QUALITY", DEFAULT_IMAGE_QUALITY),
        request_timeout=timeout,
    )
