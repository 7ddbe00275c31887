import boto3
from typing import Optional, Dict, List
from urllib.parse import quote
from botocore.exceptions import ClientError
from gallery.settings import settings
import logging

log = logging.getLogger(__name__)

# -------------------------
# S3 Service
# -------------------------
class S3Service:
    """
        Object store over S3. Each gallery collection (originals, thumbnails)
        is its own bucket, so a collection name is a bucket name here.
    """
    def __init__(self):
        session = boto3.session.Session(region_name=settings.aws_region)
        kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
        }
        if settings.aws_endpoint_url:
            kwargs["endpoint_url"] = settings.aws_endpoint_url

        self.client = session.client("s3", **kwargs)
        self.base_url = (
            settings.public_endpoint
            or settings.aws_endpoint_url
            or f"https://s3.{settings.aws_region}.amazonaws.com"
        ).rstrip("/")
        log.info("Initialized S3 client (%s)", self.base_url)

        # Ensure both collections exist at initialization
        for bucket in (settings.photos_bucket, settings.thumbnails_bucket):
            self.ensure_bucket(bucket)

    def ensure_bucket(self, bucket: str):
        try:
            self.client.head_bucket(Bucket=bucket)
            log.debug("Bucket %s already exists", bucket)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code in ("404", "NoSuchBucket"):
                self.client.create_bucket(Bucket=bucket)
                log.info("Created bucket %s", bucket)
            else:
                log.error("Failed to check/create bucket %s: %s", bucket, e)
                raise

    def object_uri(self, bucket: str, key: str) -> str:
        """Path-style address of an object: <base>/<bucket>/<key>."""
        return f"{self.base_url}/{bucket}/{quote(key)}"

    def put(self, bucket: str, key: str, data: bytes, content_type: str):
        self.client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        log.debug("Uploaded %d bytes to s3://%s/%s", len(data), bucket, key)

    def get(self, bucket: str, key: str) -> bytes:
        resp = self.client.get_object(Bucket=bucket, Key=key)
        return resp["Body"].read()

    def list_all(self, bucket: str) -> List[Dict[str, str]]:
        """Every object in the bucket as {key, uri}, in listing order."""
        items = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            for obj in page.get("Contents", []):
                items.append({"key": obj["Key"], "uri": self.object_uri(bucket, obj["Key"])})
        return items

    def get_metadata(self, bucket: str, key: str) -> Dict[str, str]:
        # S3 returns user metadata keys lowercased
        resp = self.client.head_object(Bucket=bucket, Key=key)
        return resp.get("Metadata", {})

    def set_metadata(self, bucket: str, key: str, metadata: Dict[str, str]):
        # S3 metadata is immutable; replace it with an in-place copy
        head = self.client.head_object(Bucket=bucket, Key=key)
        self.client.copy_object(
            Bucket=bucket,
            Key=key,
            CopySource={"Bucket": bucket, "Key": key},
            Metadata=metadata,
            MetadataDirective="REPLACE",
            ContentType=head.get("ContentType", "application/octet-stream"),
        )
        log.debug("Replaced metadata on s3://%s/%s (%d keys)", bucket, key, len(metadata))

    def generate_presigned_url(self, bucket: str, key: str, expires_in: Optional[int] = None) -> str:
        expires = expires_in or settings.presign_expire_seconds
        url = self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires,
        )
        if settings.public_endpoint and settings.aws_endpoint_url:
            url = url.replace(settings.aws_endpoint_url, settings.public_endpoint)
        return url

    def close(self):
        self.client.close()
        log.info("Closed S3 client")
