from typing import BinaryIO, List, Optional, Tuple
from urllib.parse import quote

import boto3
import structlog
from botocore.client import Config
from botocore.exceptions import ClientError

from gallery.config import Settings
from gallery.errors import StorageError, StorageErrorKind

logger = structlog.get_logger()

UPLOAD_PREFIX = "uploads/"
PRESIGNED_URL_EXPIRES = 3600


def build_s3_client(settings: Settings):
    kwargs = {
        "region_name": settings.AWS_REGION,
        "endpoint_url": settings.S3_ENDPOINT_URL,
        "config": Config(signature_version="s3v4"),
    }
    if settings.static_credentials:
        kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
    return boto3.client("s3", **kwargs)


class S3Storage:
    """Bucket-scoped wrapper over the boto3 S3 client.

    SDK failures surface as StorageError with a NOT_FOUND/OTHER kind so
    callers never inspect raw botocore responses.
    """

    def __init__(self, client, bucket: str, region: Optional[str] = None, endpoint_url: Optional[str] = None):
        self._client = client
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3Storage":
        return cls(
            build_s3_client(settings),
            bucket=settings.S3_BUCKET,
            region=settings.AWS_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
        )

    def bucket_exists(self) -> bool:
        try:
            self._client.head_bucket(Bucket=self.bucket)
            return True
        except ClientError as e:
            err = StorageError.from_client_error(e)
            if err.kind is StorageErrorKind.NOT_FOUND:
                return False
            raise err from e

    def ensure_bucket(self) -> bool:
        """Create the bucket if it is missing. Returns True when it was created."""
        if self.bucket_exists():
            logger.info("bucket_exists", bucket=self.bucket)
            return False
        params = {"Bucket": self.bucket}
        # us-east-1 rejects an explicit LocationConstraint
        if self.region and self.region != "us-east-1" and not self.endpoint_url:
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self._client.create_bucket(**params)
        except ClientError as e:
            raise StorageError.from_client_error(e) from e
        logger.info("bucket_created", bucket=self.bucket)
        return True

    def object_url(self, key: str) -> str:
        """Permanent (unsigned) location of an object."""
        quoted = quote(key)
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted}"
        if self.region and self.region != "us-east-1":
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quoted}"

    def put_object(self, file_obj: BinaryIO, key: str, content_type: Optional[str] = None) -> str:
        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type
        try:
            self._client.upload_fileobj(file_obj, self.bucket, key, ExtraArgs=extra_args)
        except ClientError as e:
            raise StorageError.from_client_error(e) from e
        return self.object_url(key)

    def presigned_url(self, key: str, expires_in: int = PRESIGNED_URL_EXPIRES) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except ClientError as e:
            raise StorageError.from_client_error(e) from e

    def delete_object(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise StorageError.from_client_error(e) from e

    def list_keys(
        self, size: int, token: Optional[str] = None, prefix: str = UPLOAD_PREFIX
    ) -> Tuple[List[str], Optional[str]]:
        """One page of keys under prefix plus the continuation token, if more remain."""
        params = {"Bucket": self.bucket, "Prefix": prefix, "MaxKeys": size}
        if token:
            params["ContinuationToken"] = token
        try:
            res = self._client.list_objects_v2(**params)
        except ClientError as e:
            raise StorageError.from_client_error(e) from e
        keys = [obj["Key"] for obj in res.get("Contents", [])]
        next_token = res.get("NextContinuationToken") if res.get("IsTruncated") else None
        return keys, next_token
