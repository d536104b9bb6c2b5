from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ObjectProbe:
    """
    Result of a HEAD on the object store.

    `found=False` is the expected "not stored yet" outcome; unexpected
    backend failures are raised as StorageError instead.
    """
    found: bool
    size: Optional[int] = None


NOT_FOUND = ObjectProbe(found=False)


@runtime_checkable
class StorageProvider(Protocol):
    """
    Object storage abstraction used by the batch handler and config loader.

    Keys passed here are object ids (or the config key); providers map them
    onto their own layout.
    """

    def get_object(self, key: str) -> bytes: ...

    def probe_object(self, oid: str) -> ObjectProbe: ...

    def presign_upload(self, oid: str, size: int, ttl_seconds: int) -> str: ...

    def presign_download(self, oid: str, ttl_seconds: int) -> str: ...
