#!/usr/bin/env python3
"""
Entry point for the gallery sync tool.
"""

import logging
import os
import sys
from typing import Optional

from gallerysync.config import load_config
from gallerysync.exceptions import ConfigError, GallerySyncError
from gallerysync.syncer import GallerySync

LOGGER = logging.getLogger("gallerysync")


def _log_level(name: str) -> Optional[int]:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else None


def main() -> int:
    level_name = os.getenv("GALLERYSYNC_LOG_LEVEL", "INFO")
    level = _log_level(level_name)
    logging.basicConfig(
        level=level if level is not None else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if level is None:
        LOGGER.warning("Unknown GALLERYSYNC_LOG_LEVEL %r, using INFO", level_name)

    # Nothing touches the network or disk until the config is valid
    try:
        config = load_config()
    except ConfigError as exc:
        LOGGER.error("%s", exc)
        return 1

    syncer = GallerySync(config)
    try:
        syncer.sync()
    except GallerySyncError as exc:
        LOGGER.error("Sync failed: %s", exc)
        return 1
    except OSError as exc:
        LOGGER.error("Sync failed on local filesystem: %s", exc)
        return 1

    LOGGER.info("All sync operations complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
