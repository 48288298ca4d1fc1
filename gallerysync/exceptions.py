"""Error taxonomy for gallery sync runs."""


class GallerySyncError(Exception):
    """Base exception for gallery sync failures."""


class ConfigError(GallerySyncError):
    """Raised when required settings are missing or malformed."""


class QueryError(GallerySyncError):
    """Raised when the remote record listing fails."""


class ManifestError(GallerySyncError):
    """Raised when the persisted manifest cannot be read."""


class MaterializeError(GallerySyncError):
    """Base exception for per-record image failures."""


class FetchError(MaterializeError):
    """Raised when an image cannot be downloaded."""


class EncodeError(MaterializeError):
    """Raised when downloaded bytes cannot be transcoded."""
