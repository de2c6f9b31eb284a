"""
Object storage client - S3 compatible (AWS S3, MinIO, Supabase Storage).
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import UpstreamError, UpstreamTimeout

logger = structlog.get_logger()


@dataclass
class StoredObject:
    """Stored object metadata"""
    key: str
    name: str
    size: int
    modified_at: Optional[datetime] = None


class ObjectStorage:
    """
    Bucket-oriented storage client.

    boto3 is blocking, so every call runs in a worker thread bounded by
    ``timeout`` seconds.

    Required credentials:
        - access_key_id
        - secret_access_key

    Optional settings:
        - endpoint_url: custom endpoint for MinIO/S3-compatible storage
        - region: AWS region (default: us-east-1)
        - public_url: base URL objects are publicly served from
    """

    def __init__(self, credentials: Dict[str, Any], settings: Optional[Dict[str, Any]] = None,
                 timeout: float = 30.0, client=None):
        self.credentials = credentials
        self.settings = settings or {}
        self.timeout = timeout
        self._client = client
        self.logger = structlog.get_logger().bind(provider=self.provider_name)

    @property
    def provider_name(self) -> str:
        return "aws_s3" if not self.settings.get("endpoint_url") else "s3_compatible"

    def _get_client(self):
        """Get boto3 S3 client"""
        if self._client is None:
            import boto3

            kwargs = {
                "aws_access_key_id": self.credentials.get("access_key_id"),
                "aws_secret_access_key": self.credentials.get("secret_access_key"),
                "region_name": self.settings.get("region", "us-east-1"),
            }

            if self.settings.get("endpoint_url"):
                kwargs["endpoint_url"] = self.settings["endpoint_url"]

            self._client = boto3.client("s3", **kwargs)
        return self._client

    async def _call(self, operation: str, fn, *args, **kwargs):
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args, **kwargs), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise UpstreamTimeout("Storage request timed out", service="storage",
                                  detail=f"{operation} exceeded {self.timeout}s")
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError("Storage service unavailable", service="storage",
                                detail=f"{operation}: {e}")

    async def upload_bytes(self, bucket: str, key: str, content: bytes,
                           mime_type: str = "application/octet-stream") -> str:
        """Upload bytes; returns the object key"""
        client = self._get_client()
        await self._call(
            "upload",
            client.upload_fileobj,
            BytesIO(content),
            bucket,
            key,
            ExtraArgs={"ContentType": mime_type},
        )
        self.logger.info("Object uploaded", bucket=bucket, key=key, size=len(content))
        return key

    async def delete_objects(self, bucket: str, keys: List[str]):
        """Delete several objects; missing keys are ignored by S3"""
        keys = [k for k in keys if k]
        if not keys:
            return
        client = self._get_client()
        await self._call(
            "delete",
            client.delete_objects,
            Bucket=bucket,
            Delete={"Objects": [{"Key": k} for k in keys], "Quiet": True},
        )
        self.logger.info("Objects deleted", bucket=bucket, count=len(keys))

    async def list_objects(self, bucket: str, prefix: str) -> List[StoredObject]:
        """List objects directly below ``prefix``"""
        client = self._get_client()
        prefix = prefix.strip("/") + "/"
        response = await self._call(
            "list",
            client.list_objects_v2,
            Bucket=bucket,
            Prefix=prefix,
            Delimiter="/",
        )
        return [
            StoredObject(
                key=obj["Key"],
                name=obj["Key"].split("/")[-1],
                size=obj["Size"],
                modified_at=obj.get("LastModified"),
            )
            for obj in response.get("Contents", [])
            if not obj["Key"].endswith("/")
        ]

    def public_url(self, bucket: str, key: str) -> str:
        base = self.settings.get("public_url")
        if base:
            return f"{base.rstrip('/')}/{bucket}/{key}"
        endpoint = self.settings.get("endpoint_url")
        if endpoint:
            return f"{endpoint.rstrip('/')}/{bucket}/{key}"
        region = self.settings.get("region", "us-east-1")
        return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"
