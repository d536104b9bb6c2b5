from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from auth.gateway import AuthorizationGateway
from batch.service import BatchRequestHandler
from core.context import AppContext, context_from_request


# -----------------------------
# Canonical context access
# -----------------------------

def get_context(request: Request) -> AppContext:
    """
    Canonical runtime context resolver.

    Source of truth: request.app.state.context
    """
    return context_from_request(request)


# -----------------------------
# Canonical service deps
# -----------------------------

def get_gateway(request: Request) -> AuthorizationGateway:
    return get_context(request).gateway


GatewayDep = Annotated[AuthorizationGateway, Depends(get_gateway)]


def get_batch_handler(request: Request) -> BatchRequestHandler:
    return get_context(request).batch_handler


BatchHandlerDep = Annotated[BatchRequestHandler, Depends(get_batch_handler)]
