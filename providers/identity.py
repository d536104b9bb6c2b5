from __future__ import annotations

from typing import Protocol, runtime_checkable

from auth.models import GitPermissions


class IdentityProviderError(RuntimeError):
    """The identity provider rejected the token or could not be reached."""


@runtime_checkable
class IdentityProvider(Protocol):
    """
    Identity/permission source for Basic credentials.

    The token is the caller's password (e.g. a GitHub access token).
    """

    async def login_for_token(self, token: str) -> str: ...

    async def repository_permissions(self, token: str, owner: str, repo: str) -> GitPermissions: ...
