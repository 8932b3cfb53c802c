"""
S3-compatible object storage (Backblaze B2 in production).

boto3 is synchronous, so every call is pushed to a worker thread to keep the
event loop free. Timeouts are explicit and botocore's own retries are off:
callers decide whether a StorageTimeout is worth another attempt.
"""

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from openclaw.config import Settings
from openclaw.errors import StorageTimeout, StorageUnavailable

logger = logging.getLogger(__name__)


def build_s3_client(settings: Settings):
    return boto3.client(
        "s3",
        region_name=settings.b2_region,
        endpoint_url=settings.b2_endpoint,
        aws_access_key_id=settings.b2_key_id,
        aws_secret_access_key=settings.b2_app_key,
        config=Config(
            s3={"addressing_style": "path"},
            connect_timeout=settings.storage_timeout_seconds,
            read_timeout=settings.storage_timeout_seconds,
            retries={"total_max_attempts": 1, "mode": "standard"},
        ),
    )


class ObjectStorage:
    """A bucket plus the client that talks to it."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        return cls(build_s3_client(settings), settings.b2_bucket)

    async def put_object(
        self, key: str, body: bytes | str, content_type: str = "application/octet-stream"
    ) -> str:
        """Upload one object and return its key."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        await self._call(
            "put_object",
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
        )
        logger.info("Wrote s3://%s/%s (%d bytes)", self.bucket, key, len(body))
        return key

    async def _call(self, operation: str, **kwargs):
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            logger.warning("Object storage %s timed out: %r", operation, e)
            raise StorageTimeout(str(e)) from e
        except (ClientError, BotoCoreError) as e:
            logger.error("Object storage %s failed: %r", operation, e)
            raise StorageUnavailable(str(e)) from e

    def close(self) -> None:
        self.client.close()
