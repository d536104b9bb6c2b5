from __future__ import annotations

import logging
import os
from typing import Optional

from core.settings import Settings, get_settings

log = logging.getLogger(__name__)


class SettingsError(RuntimeError):
    pass


def validate_settings(s: Optional[Settings] = None) -> None:
    """
    Validate deployment configuration at startup.

    - S3_BUCKET: hard fail if missing (objects always live in S3)
    - LFS_CONFIG_FILE: hard fail if set but not a file
    - GITHUB_API_URL: info when pointing at GitHub Enterprise
    """
    s = s or get_settings()

    if not s.storage.bucket:
        raise SettingsError("S3_BUCKET is required")

    if s.lfs_config.source == "file":
        if not os.path.isfile(s.lfs_config.path):
            raise SettingsError(f"LFS_CONFIG_FILE does not exist: {s.lfs_config.path}")
        log.warning("LFS config read from local file %s (dev only)", s.lfs_config.path)
    else:
        log.info("LFS config: s3://%s/%s", s.storage.bucket, s.lfs_config.key)

    if not s.storage.prefix:
        log.warning("S3_PREFIX is empty: objects share the bucket root with %s", s.lfs_config.key)

    if s.identity.github_api_url != "https://api.github.com":
        log.info("Identity provider: GitHub Enterprise at %s", s.identity.github_api_url)
