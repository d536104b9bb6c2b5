from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.errors import StorageError
from core.settings import StorageSettings
from providers.storage import NOT_FOUND, ObjectProbe, StorageProvider


_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def _is_not_found(exc: ClientError) -> bool:
    err = exc.response.get("Error") or {}
    if str(err.get("Code") or "") in _NOT_FOUND_CODES:
        return True
    meta = exc.response.get("ResponseMetadata") or {}
    return meta.get("HTTPStatusCode") == 404


class S3StorageProvider(StorageProvider):
    """
    Native AWS S3 StorageProvider.

    Uses boto3 credential resolution (IAM role in Lambda/EKS).
    No access keys required/expected in AWS runtime.

    Required env:
      - S3_BUCKET

    Optional env:
      - S3_PREFIX (default "objects/", applied to object ids only)
      - S3_ENDPOINT_URL (S3-compatible stores, local stacks)
      - AWS_REGION or AWS_DEFAULT_REGION
      - S3_MAX_POOL_CONNECTIONS (default 10)

    botocore retries are disabled: a failed call fails the request.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        max_pool_connections: int = 10,
        client: Any = None,
    ):
        bucket = (bucket or "").strip()
        if not bucket:
            raise RuntimeError("S3_BUCKET is required for S3 storage provider")

        prefix = (prefix or "").strip()
        if prefix and not prefix.endswith("/"):
            prefix = prefix + "/"

        self.bucket = bucket
        self.prefix = prefix

        if client is None:
            cfg = Config(
                retries={"total_max_attempts": 1, "mode": "standard"},
                region_name=region,
                signature_version="s3v4",
                max_pool_connections=max_pool_connections,
            )
            client = boto3.client("s3", config=cfg, endpoint_url=endpoint_url)
        self.s3 = client

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "S3StorageProvider":
        return cls(
            bucket=settings.bucket,
            prefix=settings.prefix,
            region=settings.region,
            endpoint_url=settings.endpoint_url,
            max_pool_connections=settings.max_pool_connections,
        )

    def _key(self, oid: str) -> str:
        oid = (oid or "").lstrip("/")
        if self.prefix:
            return f"{self.prefix}{oid}"
        return oid

    def get_object(self, key: str) -> bytes:
        # Raw key: the config record lives outside the object prefix.
        k = (key or "").lstrip("/")
        try:
            resp = self.s3.get_object(Bucket=self.bucket, Key=k)
            return resp["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"get_object failed for s3://{self.bucket}/{k}: {exc}") from exc

    def probe_object(self, oid: str) -> ObjectProbe:
        k = self._key(oid)
        try:
            resp = self.s3.head_object(Bucket=self.bucket, Key=k)
        except ClientError as exc:
            if _is_not_found(exc):
                return NOT_FOUND
            raise StorageError(f"head_object failed for s3://{self.bucket}/{k}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"head_object failed for s3://{self.bucket}/{k}: {exc}") from exc

        return ObjectProbe(found=True, size=resp.get("ContentLength"))

    def _presign(self, method: str, params: Dict[str, Any], ttl_seconds: int) -> str:
        try:
            return self.s3.generate_presigned_url(
                ClientMethod=method,
                Params=params,
                ExpiresIn=max(1, int(ttl_seconds)),
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"{method} presign failed for s3://{self.bucket}/{params.get('Key')}: {exc}") from exc

    def presign_upload(self, oid: str, size: int, ttl_seconds: int) -> str:
        # ContentLength is signed into the URL: S3 rejects a body of any other length.
        return self._presign(
            "put_object",
            {"Bucket": self.bucket, "Key": self._key(oid), "ContentLength": int(size)},
            ttl_seconds,
        )

    def presign_download(self, oid: str, ttl_seconds: int) -> str:
        return self._presign(
            "get_object",
            {"Bucket": self.bucket, "Key": self._key(oid)},
            ttl_seconds,
        )
