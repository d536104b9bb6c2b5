from __future__ import annotations

from typing import Dict, Optional


class LfsError(Exception):
    """
    Base for errors that map onto an HTTP status.

    `message` is what the client sees. Subclasses with `expose = False`
    are collapsed to a generic message by the app's exception handler.
    """

    status_code = 500
    expose = True

    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers


class ValidationFailed(LfsError):
    status_code = 422


class AuthenticationFailed(LfsError):
    status_code = 401


class PermissionDenied(LfsError):
    status_code = 403


class StorageError(LfsError):
    """Unexpected object store failure (never "not found")."""

    status_code = 500
    expose = False


class ConfigError(LfsError):
    status_code = 500
    expose = False
