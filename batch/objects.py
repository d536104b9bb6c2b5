from __future__ import annotations

from providers.storage import StorageProvider


class ObjectExistenceChecker:
    """Asks the object store whether an oid is already stored."""

    def __init__(self, storage: StorageProvider):
        self._storage = storage

    def exists(self, oid: str) -> bool:
        # StorageError propagates; only a not-found probe maps to False.
        return self._storage.probe_object(oid).found


class TransferURLIssuer:
    """
    Issues capability URLs for a single store operation.

    Possession of the URL grants exactly the bound operation until it
    expires, independent of the caller's credential.
    """

    def __init__(self, storage: StorageProvider):
        self._storage = storage

    def issue_upload(self, oid: str, size: int, ttl_seconds: int) -> str:
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        return self._storage.presign_upload(oid, size, ttl_seconds)

    def issue_download(self, oid: str, ttl_seconds: int) -> str:
        return self._storage.presign_download(oid, ttl_seconds)
