import io
import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..settings import settings

logger = logging.getLogger("recipebox.storage")

EXTENSIONS = {
    "image/webp": "webp",
    "image/png": "png",
    "image/jpeg": "jpg",
}


@dataclass
class PutResult:
    key: str
    public_url: str


class S3CompatStore:
    """Blob store on any S3-compatible bucket (R2, MinIO, S3)."""

    def __init__(
        self,
        endpoint_url: str,
        region_name: str,
        access_key_id: str,
        secret_access_key: str,
        bucket: str,
        public_base_url: str,
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.s3 = boto3.client(
            service_name="s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region_name,
        )

    @staticmethod
    def new_key(content_type: str = "image/webp") -> str:
        return f"images/{uuid.uuid4()}.{EXTENSIONS.get(content_type, 'bin')}"

    def put_bytes(self, *, data: bytes, content_type: str, key: Optional[str] = None) -> PutResult:
        key = key or self.new_key(content_type)
        self.s3.put_object(Bucket=self.bucket, Key=key, Body=io.BytesIO(data), ContentType=content_type)
        logger.info(f"Stored {len(data)} bytes at {key}")
        return PutResult(key=key, public_url=f"{self.public_base_url}/{key}")

    def delete(self, key: str) -> bool:
        """Delete a blob. Returns False instead of raising on storage errors."""
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"Deleted {key}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete {key}: {e}")
            return False

    def presigned_upload_url(self, key: str, expires_in: int) -> str:
        return self.s3.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )


@lru_cache(maxsize=1)
def get_store() -> S3CompatStore:
    return S3CompatStore(
        endpoint_url=settings.object_store_endpoint,
        region_name=settings.object_store_region,
        access_key_id=settings.object_store_access_key_id,
        secret_access_key=settings.object_store_secret_access_key,
        bucket=settings.object_store_bucket,
        public_base_url=settings.object_public_base_url,
    )


def public_url(key: Optional[str]) -> Optional[str]:
    """Public URL for a blob key without creating an S3 client."""
    if not key:
        return None
    if key.startswith("http"):
        return key
    return f"{settings.object_public_base_url.rstrip('/')}/{key}"
