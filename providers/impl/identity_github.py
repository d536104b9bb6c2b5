from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from auth.models import GitPermissions
from core.settings import IdentitySettings
from providers.identity import IdentityProvider, IdentityProviderError

log = logging.getLogger(__name__)


class GitHubIdentityProvider(IdentityProvider):
    """
    GitHub REST API identity provider.

    - GET /user                -> login of the token's owner
    - GET /repos/{owner}/{repo} -> "permissions" block for that user

    `transport` is only for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = (api_url or "https://api.github.com").rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: IdentitySettings) -> "GitHubIdentityProvider":
        return cls(api_url=settings.github_api_url, timeout_seconds=settings.timeout_seconds)

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def _get_json(self, path: str, token: str) -> Dict[str, Any]:
        url = f"{self.api_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                r = await client.get(url, headers=self._headers(token))
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as exc:
            raise IdentityProviderError(f"GitHub {path} returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError(f"GitHub {path} request failed: {exc}") from exc
        except ValueError as exc:
            raise IdentityProviderError(f"GitHub {path} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise IdentityProviderError(f"GitHub {path} returned unexpected payload")
        return data

    async def login_for_token(self, token: str) -> str:
        data = await self._get_json("/user", token)
        login = data.get("login")
        if not isinstance(login, str) or not login.strip():
            raise IdentityProviderError("GitHub /user response has no login")
        return login.strip()

    async def repository_permissions(self, token: str, owner: str, repo: str) -> GitPermissions:
        log.debug("Fetching permissions on %s/%s", owner, repo)
        data = await self._get_json(f"/repos/{owner}/{repo}", token)
        perms = data.get("permissions")
        if not isinstance(perms, dict):
            # Present only when the token's user has some relationship with the repo.
            return GitPermissions(push=False, pull=False)
        try:
            return GitPermissions.model_validate(perms)
        except ValidationError as exc:
            raise IdentityProviderError(f"GitHub /repos/{owner}/{repo} returned malformed permissions") from exc
