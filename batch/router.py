from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from auth.deps import authorize_request, user_context_from_request
from auth.models import BATCH_PATH
from batch.models import LFS_MEDIA_TYPE
from core.deps import BatchHandlerDep

# ---------------------------------------------------------------------
# Router (AUTH ENFORCED HERE)
# ---------------------------------------------------------------------

router = APIRouter(
    tags=["lfs"],
    dependencies=[Depends(authorize_request)],
)


# ---------------------------------------------------------------------
# POST /objects/batch
# ---------------------------------------------------------------------
@router.post(BATCH_PATH)
async def batch(request: Request, handler: BatchHandlerDep):
    """
    Git LFS batch API.

    The raw body is handed to the handler so that a missing body and
    an unsupported operation get LFS-specific messages.
    """
    body = await request.body()
    response = await handler.handle(body, user_context_from_request(request))
    return JSONResponse(content=response.to_wire(), media_type=LFS_MEDIA_TYPE)
