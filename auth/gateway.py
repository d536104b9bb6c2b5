from __future__ import annotations

import base64
import logging
from typing import Optional, Tuple

from auth.models import PolicyDecision, UserContext, batch_capability
from core.errors import ConfigError
from core.lfs_config import ConfigProvider
from providers.identity import IdentityProvider, IdentityProviderError

log = logging.getLogger(__name__)


class AuthDenied(Exception):
    """Internal denial cause. Logged, never returned to the caller."""


def decode_basic_credential(header: Optional[str]) -> Tuple[str, str]:
    """
    Parse "Basic base64(username:token)".

    The token may itself contain ':' so only the first one splits.
    Non-ASCII input, bad padding and non-UTF-8 bytes all surface as
    ValueError (binascii.Error and UnicodeDecodeError included).
    """
    if not header or not header.strip():
        raise AuthDenied("missing authorization header")

    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        raise AuthDenied("authorization header is not Basic")

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except ValueError as exc:
        raise AuthDenied(f"undecodable Basic credential: {exc}") from exc

    username, sep, token = decoded.partition(":")
    if not sep or not username or not token:
        raise AuthDenied("Basic credential must be username:token")
    return username, token


class AuthorizationGateway:
    """
    Authorizer making sure the user has access to the repository and
    reporting their push/pull permissions.

    Users supply their GitHub username and an access token as password.
    """

    def __init__(self, identity: IdentityProvider, config_provider: ConfigProvider):
        self._identity = identity
        self._config = config_provider

    async def authorize(self, credential_header: Optional[str]) -> Optional[PolicyDecision]:
        """Return a decision for the batch endpoint, or None on denial."""
        try:
            username, token = decode_basic_credential(credential_header)
            context = await self._validate_user(username, token)
        except AuthDenied as exc:
            log.warning("Authorization denied: %s", exc)
            return None
        except (IdentityProviderError, ConfigError):
            log.exception("Failed to authenticate user using basic authentication")
            return None

        log.info("Validated %s (push=%s pull=%s)", context.username, context.push, context.pull)
        return PolicyDecision(
            principal_id=context.username,
            capabilities=[batch_capability(context.username)],
            context=context,
        )

    async def _validate_user(self, username: str, token: str) -> UserContext:
        login = await self._identity.login_for_token(token)
        if login.lower() != username.lower():
            raise AuthDenied(f"user mismatch: credential for {login!r}, asserted {username!r}")

        cfg = await self._config.load()
        perms = await self._identity.repository_permissions(token, cfg.repo.owner, cfg.repo.repo)
        if not perms.pull:
            raise AuthDenied(f"{username!r} has no pull permission on {cfg.repo.owner}/{cfg.repo.repo}")

        return UserContext(username=username, push=perms.push, pull=perms.pull)
