from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

BATCH_METHOD = "POST"
BATCH_PATH = "/objects/batch"


class GitPermissions(BaseModel):
    """Permissions the user has on the repository (GitHub sends more; ignored)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    push: bool = False
    pull: bool = False


class UserContext(GitPermissions):
    """Per-request permission context attached after authorization."""

    username: str = Field(..., min_length=1)


class CapabilityDescriptor(BaseModel):
    """
    Provider-neutral grant: `principal` may perform `action` on `resource`.

    resource is "<METHOD> <path>", e.g. "POST /objects/batch".
    """

    model_config = ConfigDict(frozen=True)

    resource: str
    action: Literal["invoke"] = "invoke"
    principal: str


class PolicyDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    principal_id: str
    effect: Literal["Allow"] = "Allow"
    capabilities: List[CapabilityDescriptor]
    context: UserContext

    def allows(self, method: str, path: str) -> bool:
        wanted = f"{(method or '').upper()} {(path or '').rstrip('/') or '/'}"
        return any(c.resource == wanted for c in self.capabilities)


def batch_capability(principal: str) -> CapabilityDescriptor:
    return CapabilityDescriptor(resource=f"{BATCH_METHOD} {BATCH_PATH}", principal=principal)
