from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request

from auth.gateway import AuthorizationGateway
from batch.objects import ObjectExistenceChecker, TransferURLIssuer
from batch.service import BatchRequestHandler
from core.lfs_config import ConfigProvider
from core.settings import Settings, get_settings
from providers.identity import IdentityProvider
from providers.impl.identity_github import GitHubIdentityProvider
from providers.impl.storage_s3 import S3StorageProvider
from providers.storage import StorageProvider


@dataclass(frozen=True)
class AppContext:
    """
    Everything shared across requests, built once at startup.

    The config provider memoizes config.json; the storage provider owns
    the boto3 client. Nothing else here holds mutable state.
    """
    settings: Settings
    storage: StorageProvider
    identity: IdentityProvider
    config_provider: ConfigProvider
    gateway: AuthorizationGateway
    batch_handler: BatchRequestHandler


def build_app_context(
    settings: Optional[Settings] = None,
    storage: Optional[StorageProvider] = None,
    identity: Optional[IdentityProvider] = None,
) -> AppContext:
    """Composition root. Tests pass fake storage/identity."""
    settings = settings or get_settings()
    storage = storage or S3StorageProvider.from_settings(settings.storage)
    identity = identity or GitHubIdentityProvider.from_settings(settings.identity)

    config_provider = ConfigProvider.from_settings(settings.lfs_config, storage)
    return AppContext(
        settings=settings,
        storage=storage,
        identity=identity,
        config_provider=config_provider,
        gateway=AuthorizationGateway(identity, config_provider),
        batch_handler=BatchRequestHandler(
            checker=ObjectExistenceChecker(storage),
            issuer=TransferURLIssuer(storage),
            config_provider=config_provider,
        ),
    )


def init_app_context(app: FastAPI, context: Optional[AppContext] = None) -> AppContext:
    """
    Called once during app startup/lifespan. Attaches AppContext onto app.state.
    """
    app.state.context = context or build_app_context()
    return app.state.context


def context_from_request(request: Request) -> AppContext:
    """
    Canonical context accessor for ALL routers.

    Routers never reach for globals; the context is attached once during
    app startup as request.app.state.context.
    """
    try:
        return request.app.state.context
    except AttributeError as exc:
        raise RuntimeError("AppContext not initialized on app.state (startup/lifespan not executed).") from exc
