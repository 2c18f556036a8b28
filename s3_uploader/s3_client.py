"""S3 client factory and the put-object seam used by the uploader.

Creates a boto3 S3 client configured with the bucket's region, credentials,
optional custom endpoint, and per-attempt network timeouts. botocore's own
retries are limited to a single attempt: retry policy lives in
RetryingUploader.
"""

from typing import Any, BinaryIO, Optional, Union

import boto3
from botocore.client import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from s3_uploader.models import UploaderConfig


class TransportError(Exception):
    """Raised when the storage client fails to store an object."""

    pass


class AttemptTimeout(TransportError):
    """Raised when a single put attempt exceeds the connect or read timeout."""

    pass


def build_s3_client(config: UploaderConfig):
    """Build a boto3 S3 client for the given configuration.

    Args:
        config: Uploader configuration containing credentials, region,
               optional endpoint, addressing style and timeouts.

    Returns:
        A boto3 S3 client. boto3 clients are thread-safe, so one instance
        is shared by every concurrent upload.
    """
    boto_config = Config(
        signature_version="s3v4",
        s3={"addressing_style": config.addressing_style},
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
        retries={"max_attempts": 1, "mode": "standard"},
    )

    return boto3.client(
        "s3",
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.aws_access_key_id,
        aws_secret_access_key=config.aws_secret_access_key,
        region_name=config.region_name,
        config=boto_config,
    )


def put_object(
    client: Any,
    bucket: str,
    key: str,
    body: Union[bytes, BinaryIO],
    content_type: str,
    metadata: Optional[dict[str, str]] = None,
) -> dict[str, Optional[str]]:
    """Store one object and return its ETag and version.

    Args:
        client: boto3 S3 client
        bucket: Destination bucket name
        key: Destination object key
        body: File contents, either bytes or an open binary file
        content_type: Content-Type header for the object
        metadata: User metadata stored with the object

    Returns:
        Dict with "etag" (quotes stripped) and "version_id" (None when the
        bucket is unversioned).

    Raises:
        AttemptTimeout: If the connection or read timed out.
        TransportError: For any other client or service error.
    """
    try:
        response = client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=metadata or {},
        )
    except (ConnectTimeoutError, ReadTimeoutError) as e:
        raise AttemptTimeout(f"Timed out: {e}") from e
    except ClientError as e:
        error = e.response.get("Error", {})
        code = error.get("Code", "Unknown")
        message = error.get("Message", str(e))
        raise TransportError(f"{code}: {message}") from e
    except BotoCoreError as e:
        raise TransportError(str(e)) from e

    return {
        "etag": response.get("ETag", "").strip('"'),
        "version_id": response.get("VersionId"),
    }


def object_url(config: UploaderConfig, key: str) -> str:
    """Render the virtual-hosted URL of an object, for display only."""
    return (
        f"https://{config.bucket_name}.s3.{config.region_name}."
        f"{config.endpoint_suffix}/{key}"
    )
