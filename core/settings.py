from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_float(name: str, default: float) -> float:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class StorageSettings:
    """
    S3 bucket holding LFS objects and (by default) config.json.

    prefix is prepended to every object id; the config key is NOT prefixed,
    so uploaded objects can never overwrite the config record.
    """
    bucket: str
    prefix: str = "objects/"
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    max_pool_connections: int = 10


@dataclass(frozen=True)
class LfsConfigSettings:
    """
    Where the LFS runtime config lives.

    source:
      - "s3"   -> object `key` in the storage bucket
      - "file" -> local JSON file at `path` (dev only)
    """
    source: str
    key: str = "config.json"
    path: str = ""


@dataclass(frozen=True)
class IdentitySettings:
    github_api_url: str
    timeout_seconds: float


@dataclass(frozen=True)
class ServerSettings:
    """uvicorn bind address for `python main.py`. reload is for local dev only."""
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


@dataclass(frozen=True)
class Settings:
    storage: StorageSettings
    lfs_config: LfsConfigSettings
    identity: IdentitySettings
    log_level: str
    server: ServerSettings = ServerSettings()


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

def _load_storage_settings() -> StorageSettings:
    bucket = (_env("S3_BUCKET", "") or "").strip()

    raw_prefix = _env("S3_PREFIX", "objects/")
    prefix = raw_prefix.strip().lstrip("/")
    if prefix and not prefix.endswith("/"):
        prefix = prefix + "/"

    region = (_env("AWS_REGION", "") or _env("AWS_DEFAULT_REGION", "") or "").strip() or None
    endpoint_url = (_env("S3_ENDPOINT_URL", "") or "").strip().rstrip("/") or None

    pool = _env_int("S3_MAX_POOL_CONNECTIONS", 10)
    if pool <= 0:
        pool = 10

    return StorageSettings(
        bucket=bucket,
        prefix=prefix,
        region=region,
        endpoint_url=endpoint_url,
        max_pool_connections=pool,
    )


def _load_lfs_config_settings() -> LfsConfigSettings:
    """
    Config source precedence:
      1) LFS_CONFIG_FILE set -> local file
      2) default -> S3 object LFS_CONFIG_KEY (default config.json)
    """
    path = (_env("LFS_CONFIG_FILE", "") or "").strip()
    key = (_env("LFS_CONFIG_KEY", "") or "config.json").strip().lstrip("/") or "config.json"
    if path:
        return LfsConfigSettings(source="file", key=key, path=path)
    return LfsConfigSettings(source="s3", key=key)


def _load_identity_settings() -> IdentitySettings:
    api_url = (_env("GITHUB_API_URL", "") or "https://api.github.com").strip().rstrip("/")
    timeout_seconds = max(1.0, _env_float("GITHUB_TIMEOUT_SECONDS", 10.0))
    return IdentitySettings(github_api_url=api_url, timeout_seconds=timeout_seconds)



def _load_server_settings() -> ServerSettings:
    host = (_env("HOST", "") or "0.0.0.0").strip() or "0.0.0.0"
    port = _env_int("PORT", 8000)
    if not 0 < port < 65536:
        port = 8000
    return ServerSettings(host=host, port=port, reload=_env_bool("UVICORN_RELOAD", False))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        storage=_load_storage_settings(),
        lfs_config=_load_lfs_config_settings(),
        identity=_load_identity_settings(),
        log_level=(_env("LOG_LEVEL", "") or "INFO").strip().upper(),
        server=_load_server_settings(),
    )
