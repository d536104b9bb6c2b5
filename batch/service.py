from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from auth.models import UserContext
from batch.models import (
    BASIC_TRANSFER,
    HASH_ALGO,
    BatchRequest,
    BatchRequestObject,
    BatchResponse,
    BatchResponseObject,
    ObjectAction,
    ObjectError,
)
from batch.objects import ObjectExistenceChecker, TransferURLIssuer
from core.errors import AuthenticationFailed, PermissionDenied, ValidationFailed
from core.lfs_config import ConfigProvider, LfsConfig

log = logging.getLogger(__name__)


class BatchRequestHandler:
    """
    Git LFS batch API: decides per object what the client still has to do.

    upload:   missing objects get a presigned PUT bound to their size,
              stored ones get no action.
    download: stored objects get a presigned GET, missing ones a per-object
              404 error (the request itself still succeeds).

    Per-object probes run concurrently; the response keeps request order.
    """

    def __init__(
        self,
        checker: ObjectExistenceChecker,
        issuer: TransferURLIssuer,
        config_provider: ConfigProvider,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._checker = checker
        self._issuer = issuer
        self._config = config_provider
        self._clock = clock

    async def handle(self, body: Optional[bytes], user_context: Optional[UserContext]) -> BatchResponse:
        started = self._clock()
        request = self._parse(body)

        if user_context is None:
            # The authorizer was skipped or denied upstream.
            raise AuthenticationFailed("auth not present")

        operation = request.operation
        if operation == "upload":
            objects = await self._handle_uploads(request.objects, user_context)
        elif operation == "download":
            objects = await self._handle_downloads(request.objects)
        else:
            raise ValidationFailed(f"{operation} operation not supported!")

        log.info(
            "batch %s user=%s objects=%d took=%.1fms",
            operation,
            user_context.username,
            len(objects),
            (self._clock() - started) * 1000.0,
        )
        return BatchResponse(transfer=BASIC_TRANSFER, hash_algo=HASH_ALGO, objects=objects)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _parse(self, body: Optional[bytes]) -> BatchRequest:
        if not body or not body.strip():
            log.warning("Returning 422 error to user: no body")
            raise ValidationFailed("Body was not specified")

        try:
            request = BatchRequest.model_validate_json(body)
        except ValidationError as exc:
            log.warning("Returning 422 error to user: %s", exc)
            raise ValidationFailed("Invalid batch request") from exc

        if request.transfers is not None and BASIC_TRANSFER not in request.transfers:
            raise ValidationFailed("Only basic transfer is supported")

        if request.hash_algo is not None and request.hash_algo != HASH_ALGO:
            raise ValidationFailed("Only sha256 hash algorithm is supported")

        return request

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def _handle_uploads(
        self, objects: List[BatchRequestObject], user_context: UserContext
    ) -> List[BatchResponseObject]:
        if not user_context.push:
            raise PermissionDenied("no permission to write")

        cfg = await self._config.load()
        return list(await asyncio.gather(*(self._upload_entry(o, cfg) for o in objects)))

    async def _handle_downloads(self, objects: List[BatchRequestObject]) -> List[BatchResponseObject]:
        cfg = await self._config.load()
        return list(await asyncio.gather(*(self._download_entry(o, cfg) for o in objects)))

    async def _upload_entry(self, obj: BatchRequestObject, cfg: LfsConfig) -> BatchResponseObject:
        entry = BatchResponseObject(oid=obj.oid, size=obj.size, authenticated=True)
        if await run_in_threadpool(self._checker.exists, obj.oid):
            return entry

        href = await run_in_threadpool(self._issuer.issue_upload, obj.oid, obj.size, cfg.upload_expiration)
        entry.actions = {"upload": ObjectAction(href=href, expires_in=cfg.upload_expiration)}
        return entry

    async def _download_entry(self, obj: BatchRequestObject, cfg: LfsConfig) -> BatchResponseObject:
        entry = BatchResponseObject(oid=obj.oid, size=obj.size, authenticated=True)
        if not await run_in_threadpool(self._checker.exists, obj.oid):
            entry.error = ObjectError(code=404, message="Object not found")
            return entry

        href = await run_in_threadpool(self._issuer.issue_download, obj.oid, cfg.download_expiration)
        entry.actions = {"download": ObjectAction(href=href, expires_in=cfg.download_expiration)}
        return entry
