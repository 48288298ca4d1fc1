import json
import logging
import os
from pathlib import Path
from typing import Iterable, List

from gallerysync.exceptions import ManifestError
from gallerysync.models import PhotoDescriptor

LOGGER = logging.getLogger(__name__)


def load_manifest(path: Path) -> List[PhotoDescriptor]:
    """
    Load photos.json into a list of descriptors. Return empty if file doesn't exist.
    """
    if not path.exists():
        return []

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise ManifestError(f"Cannot read manifest {path}: {exc}") from exc

    if not isinstance(data, list):
        raise ManifestError(f"Manifest {path} is not a JSON list")

    try:
        return [PhotoDescriptor.from_dict(entry) for entry in data]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ManifestError(f"Malformed entry in manifest {path}: {exc}") from exc


def save_manifest(path: Path, descriptors: Iterable[PhotoDescriptor]):
    """
    Sort by captureDate descending and write the manifest, replacing the old
    file in one step.
    """
    ordered = sorted(descriptors, key=lambda d: d.capture_date, reverse=True)
    payload = json.dumps([d.to_dict() for d in ordered], indent=2, ensure_ascii=False) + "\n"

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


def delete_local_file(path: Path) -> bool:
    """
    Safely delete a local file if it exists. Returns False only when the
    file is still there afterwards.
    """
    if not path.exists():
        return True
    try:
        path.unlink()
        LOGGER.info("Deleted local file: %s", path)
    except OSError as e:
        LOGGER.warning("Error deleting %s: %s", path, e)
        return False
    return True


def resolve_asset_path(project_root: Path, relative: str) -> Path:
    """
    Map a manifest-relative path ("photos/full/<id>.webp") to the filesystem.
    Raises ValueError if it points outside project_root.
    """
    root = project_root.resolve()
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        raise ValueError(f"Asset path escapes project root: {relative}")
    return candidate
