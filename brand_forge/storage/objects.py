"""Object storage for generated and uploaded media (S3-compatible R2 bucket)."""

from __future__ import annotations

import asyncio
from functools import lru_cache

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import ClientError

from brand_forge.config import get_settings

logger = structlog.get_logger()


class ObjectStorage:
    """Thin async wrapper around a boto3 S3 client.

    boto3 is blocking, so every call runs in a worker thread.
    """

    def __init__(self, client, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        kwargs = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            kwargs["ContentType"] = content_type
        await asyncio.to_thread(self.client.put_object, **kwargs)
        logger.info("storage.put", key=key, size=len(data))

    async def get(self, key: str) -> tuple[bytes, str | None] | None:
        """Object body and content type, or None when the key does not exist."""

        def _get():
            try:
                obj = self.client.get_object(Bucket=self.bucket, Key=key)
            except ClientError as exc:
                code = exc.response.get("Error", {}).get("Code")
                if code in ("404", "NoSuchKey", "NotFound"):
                    return None
                raise
            return obj["Body"].read(), obj.get("ContentType")

        return await asyncio.to_thread(_get)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        logger.info("storage.deleted", key=key)


@lru_cache
def _build_storage() -> ObjectStorage:
    settings = get_settings()
    client = boto3.session.Session().client(
        "s3",
        endpoint_url=settings.r2_endpoint_url,
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        region_name="auto",
        config=Config(signature_version="s3v4"),
    )
    logger.info("storage.connected", bucket=settings.r2_bucket)
    return ObjectStorage(client, settings.r2_bucket)


def get_object_storage() -> ObjectStorage | None:
    """Configured object storage, or None when no bucket is bound."""
    if not get_settings().object_storage_enabled:
        return None
    return _build_storage()
