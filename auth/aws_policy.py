"""
API Gateway (REST, TOKEN authorizer) rendering of a PolicyDecision.

This is the only place that knows the execute-api ARN and IAM policy
document format; the gateway itself stays provider-neutral.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from auth.gateway import AuthorizationGateway
from auth.models import PolicyDecision

log = logging.getLogger(__name__)


class AuthorizerDenied(Exception):
    """Raised to make API Gateway answer 401. The message must be "Unauthorized"."""


def _split_method_arn(method_arn: str) -> Dict[str, str]:
    # arn:aws:execute-api:{region}:{account}:{apiId}/{stage}/{verb}/{path...}
    parts = (method_arn or "").split(":")
    if len(parts) < 6 or parts[2] != "execute-api":
        raise ValueError(f"Not an execute-api method ARN: {method_arn!r}")

    partials = parts[5].split("/")
    if len(partials) < 2 or not partials[0] or not partials[1]:
        raise ValueError(f"Method ARN has no api id / stage: {method_arn!r}")

    return {
        "partition": parts[1],
        "region": parts[3],
        "account": parts[4],
        "api_id": partials[0],
        "stage": partials[1],
    }


def render_authorizer_response(decision: PolicyDecision, method_arn: str) -> Dict[str, Any]:
    arn = _split_method_arn(method_arn)
    base = f"arn:{arn['partition']}:execute-api:{arn['region']}:{arn['account']}:{arn['api_id']}/{arn['stage']}"

    resources = []
    for cap in decision.capabilities:
        verb, _, path = cap.resource.partition(" ")
        resources.append(f"{base}/{verb}/{path.lstrip('/')}")

    ctx = decision.context
    return {
        "principalId": decision.principal_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": decision.effect,
                    "Resource": resources,
                }
            ],
        },
        # Authorizer context values must be scalars.
        "context": {
            "username": ctx.username,
            "push": bool(ctx.push),
            "pull": bool(ctx.pull),
        },
    }


async def token_authorizer(event: Mapping[str, Any], gateway: AuthorizationGateway) -> Dict[str, Any]:
    """Handle an API Gateway TOKEN authorizer event."""
    decision = await gateway.authorize(event.get("authorizationToken"))
    if decision is None:
        raise AuthorizerDenied("Unauthorized")
    try:
        return render_authorizer_response(decision, str(event.get("methodArn") or ""))
    except ValueError:
        log.exception("Cannot build policy for authorizer event")
        raise AuthorizerDenied("Unauthorized") from None
