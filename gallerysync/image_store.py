"""
Download remote images and store them locally as WebP.
"""

import io
import logging
import os
from pathlib import Path

import requests
from PIL import Image, ImageOps

from gallerysync.exceptions import EncodeError, FetchError

LOGGER = logging.getLogger(__name__)


def materialize(source_url: str, destination: Path, quality: int, timeout: float = 30.0) -> None:
    """
    Fetch source_url and write it to destination as WebP at the given quality,
    replacing any existing file.
    Raises FetchError if the download fails and EncodeError if Pillow cannot
    decode or encode the bytes.
    """
    content = download_bytes(source_url, timeout)
    encode_webp(content, Path(destination), quality)


def download_bytes(url: str, timeout: float = 30.0) -> bytes:
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Failed to download {url}: {exc}") from exc

    if resp.status_code != 200:
        raise FetchError(f"Failed to download {url}: {resp.status_code}")
    return resp.content


def encode_webp(content: bytes, destination: Path, quality: int) -> None:
    # Encode next to the target and move into place so a failure never leaves
    # a truncated file at destination.
    tmp_path = destination.with_name(destination.name + ".tmp")
    try:
        with Image.open(io.BytesIO(content)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode not in ("RGB", "RGBA"):
                has_alpha = "A" in img.getbands() or "transparency" in img.info
                img = img.convert("RGBA" if has_alpha else "RGB")
            img.save(tmp_path, "WEBP", quality=quality)
        os.replace(tmp_path, destination)
    except Exception as exc:
        # Pillow raises several unrelated types here, e.g. DecompressionBombError
        tmp_path.unlink(missing_ok=True)
        raise EncodeError(f"Failed to encode {destination.name}: {exc}") from exc

    LOGGER.debug("Wrote %s (quality=%d)", destination, quality)
