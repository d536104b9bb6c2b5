from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import ConfigError
from core.settings import LfsConfigSettings
from providers.storage import StorageProvider

log = logging.getLogger(__name__)

# S3 SigV4 presigned URLs cannot outlive 7 days.
MAX_EXPIRATION_SECONDS = 7 * 24 * 3600


class RepoRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)


class LfsConfig(BaseModel):
    """
    Runtime config record (config.json):

      {
        "uploadExpiration": 900,
        "downloadExpiration": 3600,
        "repo": {"owner": "acme", "repo": "assets"}
      }
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    upload_expiration: int = Field(..., alias="uploadExpiration", ge=1, le=MAX_EXPIRATION_SECONDS)
    download_expiration: int = Field(..., alias="downloadExpiration", ge=1, le=MAX_EXPIRATION_SECONDS)
    repo: RepoRef


def parse_lfs_config(raw: Optional[bytes], source: str) -> LfsConfig:
    if not raw or not raw.strip():
        raise ConfigError(f"Config from {source} was empty")
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ConfigError(f"Config from {source} is not valid JSON: {exc}") from exc
    try:
        return LfsConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Config from {source} is malformed: {exc}") from exc


class ConfigProvider:
    """
    Loads config.json once and keeps it for the provider's lifetime.

    Concurrent first calls share one fetch. A failed load is not cached,
    so the next request tries again (no retry within a call).
    """

    def __init__(self, fetch: Callable[[], bytes], source: str):
        self._fetch = fetch
        self._source = source
        self._config: Optional[LfsConfig] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: LfsConfigSettings, storage: StorageProvider) -> "ConfigProvider":
        if settings.source == "file":
            path = settings.path

            def _read_file() -> bytes:
                with open(path, "rb") as f:
                    return f.read()

            return cls(_read_file, source=path)

        key = settings.key
        bucket = getattr(storage, "bucket", "")
        return cls(lambda: storage.get_object(key), source=f"s3://{bucket}/{key}")

    @property
    def source(self) -> str:
        return self._source

    async def load(self) -> LfsConfig:
        if self._config is not None:
            return self._config

        async with self._lock:
            if self._config is None:
                log.info("Loading LFS config from %s", self._source)
                try:
                    raw = await run_in_threadpool(self._fetch)
                except ConfigError:
                    raise
                except Exception as exc:
                    raise ConfigError(f"Failed to fetch config from {self._source}: {exc}") from exc
                self._config = parse_lfs_config(raw, self._source)
        return self._config
