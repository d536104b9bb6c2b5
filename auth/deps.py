from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request

from auth.models import UserContext
from core.deps import GatewayDep
from core.errors import AuthenticationFailed

log = logging.getLogger(__name__)

_CHALLENGE = {"WWW-Authenticate": 'Basic realm="Git LFS"'}


async def authorize_request(request: Request, gateway: GatewayDep) -> UserContext:
    """
    Runs the authorization gateway before the batch handler.

    On success the decision's context is attached as
    request.state.user_context; on denial nothing is attached and the
    caller gets a bare 401.
    """
    decision = await gateway.authorize(request.headers.get("authorization"))
    if decision is None:
        raise AuthenticationFailed("Unauthorized", headers=_CHALLENGE)

    # Match against the route template so mount prefixes don't matter.
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    if not decision.allows(request.method, path):
        log.warning("Decision for %s does not cover %s %s", decision.principal_id, request.method, path)
        raise AuthenticationFailed("Unauthorized", headers=_CHALLENGE)

    request.state.user_context = decision.context
    return decision.context


def user_context_from_request(request: Request) -> Optional[UserContext]:
    return getattr(request.state, "user_context", None)
