import logging
from typing import Dict, List, Optional, Set

from gallerysync.cloudkit_api import fetch_all_records
from gallerysync.config import FULL_DIR, IMAGE_EXTENSION, THUMBNAILS_DIR, SyncConfig
from gallerysync.exceptions import MaterializeError
from gallerysync.image_store import materialize
from gallerysync.local_store import (
    delete_local_file,
    load_manifest,
    resolve_asset_path,
    save_manifest,
)
from gallerysync.models import PhotoDescriptor, PhotoRecord, SyncResult

LOGGER = logging.getLogger(__name__)


class GallerySync:
    """
    Main class orchestrating one sync of the local gallery against CloudKit:
     - fetch every approved record
     - drop local photos that are gone remotely
     - keep photos already synced, untouched
     - download and transcode new ones
     - write photos.json
    """

    def __init__(self, config: SyncConfig):
        self.config = config

    def sync(self) -> SyncResult:
        """
        Run one full pass. QueryError, ManifestError and filesystem setup
        errors propagate; per-record failures are logged and counted.
        """
        self._ensure_directories()

        LOGGER.info("Fetching approved photos from CloudKit...")
        records = [r for r in fetch_all_records(self.config) if r.is_approved]
        LOGGER.info("Found %d approved photos", len(records))

        existing_manifest = load_manifest(self.config.manifest_path)
        result = SyncResult()

        remote_ids = {r.record_name for r in records}
        self._remove_stale(existing_manifest, remote_ids, result)

        photos = self._collect(records, existing_manifest, result)

        save_manifest(self.config.manifest_path, photos)
        LOGGER.info(
            "Manifest written with %d photos (added=%d removed=%d kept=%d failed=%d)",
            len(photos), result.added, result.removed, result.kept, result.failed,
        )
        return result

    # -----------------------------
    # 1) REMOVAL
    # -----------------------------

    def _remove_stale(self, manifest: List[PhotoDescriptor], remote_ids: Set[str], result: SyncResult):
        """
        Delete files for every manifest entry no longer present remotely.
        """
        for photo in manifest:
            if photo.id in remote_ids:
                continue
            LOGGER.info("Removing photo: %s", photo.id)
            for relative in (photo.thumbnail, photo.image):
                self._delete_asset(relative)
            result.removed += 1

    def _delete_asset(self, relative: str):
        try:
            path = resolve_asset_path(self.config.project_root, relative)
        except ValueError as e:
            LOGGER.warning("Not deleting %s: %s", relative, e)
            return
        delete_local_file(path)

    # -----------------------------
    # 2) RETENTION / ADDITION
    # -----------------------------

    def _collect(
        self,
        records: List[PhotoRecord],
        manifest: List[PhotoDescriptor],
        result: SyncResult
    ) -> List[PhotoDescriptor]:
        """
        Walk remote records in server order. Known ids keep their existing
        descriptor as-is: metadata changed remotely is NOT refreshed locally.
        """
        existing: Dict[str, PhotoDescriptor] = {p.id: p for p in manifest}
        seen: Set[str] = set()
        photos: List[PhotoDescriptor] = []

        for record in records:
            rid = record.record_name
            if rid in seen:
                LOGGER.warning("Ignoring duplicate record %s", rid)
                continue
            seen.add(rid)

            if rid in existing:
                photos.append(existing[rid])
                result.kept += 1
                continue

            descriptor = self._add_photo(record)
            if descriptor is None:
                result.failed += 1
            else:
                photos.append(descriptor)
                result.added += 1

        return photos

    def _add_photo(self, record: PhotoRecord) -> Optional[PhotoDescriptor]:
        rid = record.record_name
        if not record.thumbnail_url or not record.image_url:
            LOGGER.warning("Skipping %s: missing thumbnail or image URL", rid)
            return None
        if not _is_safe_name(rid):
            LOGGER.warning("Skipping %s: record name is not usable as a file name", rid)
            return None

        filename = f"{rid}.{IMAGE_EXTENSION}"
        thumb_path = self.config.thumbnails_dir / filename
        full_path = self.config.full_dir / filename

        LOGGER.info("Processing new photo: %s (%s)", rid, record.location_name)
        timeout = self.config.request_timeout
        try:
            materialize(record.thumbnail_url, thumb_path, self.config.thumbnail_quality, timeout)
            materialize(record.image_url, full_path, self.config.image_quality, timeout)
        except MaterializeError as e:
            LOGGER.error("Failed to process %s: %s", rid, e)
            delete_local_file(thumb_path)
            delete_local_file(full_path)
            return None

        return PhotoDescriptor(
            id=rid,
            location_name=record.location_name,
            capture_date=record.capture_date,
            thumbnail=(THUMBNAILS_DIR / filename).as_posix(),
            image=(FULL_DIR / filename).as_posix(),
        )

    # -----------------------------
    # 3) SETUP
    # -----------------------------

    def _ensure_directories(self):
        for folder in (self.config.thumbnails_dir, self.config.full_dir):
            folder.mkdir(parents=True, exist_ok=True)


def _is_safe_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name
