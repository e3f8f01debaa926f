"""
Image storage utilities for service listings.
Handles presigned upload URLs and object deletion on S3.
"""

import logging
from datetime import datetime, timedelta

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    AWS_ACCESS_KEY_ID,
    AWS_REGION,
    AWS_SECRET_ACCESS_KEY,
    PRESIGNED_URL_EXPIRY_SECONDS,
    S3_BUCKET_NAME,
    S3_ENDPOINT_URL,
)
from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)


class StorageError(ExternalServiceError):
    """Object storage rejected or failed a request"""


def get_s3_client():
    """Get configured boto3 client for S3 (or an S3-compatible endpoint)"""
    return boto3.client(
        "s3",
        endpoint_url=S3_ENDPOINT_URL,
        aws_access_key_id=AWS_ACCESS_KEY_ID,
        aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name=AWS_REGION,
    )


def build_public_url(s3_key: str) -> str:
    if S3_ENDPOINT_URL:
        return f"{S3_ENDPOINT_URL.rstrip('/')}/{S3_BUCKET_NAME}/{s3_key}"
    return f"https://{S3_BUCKET_NAME}.s3.{AWS_REGION}.amazonaws.com/{s3_key}"


def generate_presigned_upload_url(
    s3_key: str, content_type: str, expires_in: int = PRESIGNED_URL_EXPIRY_SECONDS
) -> tuple[str, datetime]:
    """
    Generate a presigned PUT URL for a direct browser upload.

    Args:
        s3_key: Destination object key
        content_type: MIME type the client must send
        expires_in: URL lifetime in seconds (default 1 hour)

    Returns:
        Tuple of (presigned_url, expires_at)

    Raises:
        StorageError: If boto3 cannot sign the request
    """
    try:
        url = get_s3_client().generate_presigned_url(
            "put_object",
            Params={
                "Bucket": S3_BUCKET_NAME,
                "Key": s3_key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to generate presigned URL for {s3_key}: {e}")
        raise StorageError("Could not generate upload URL") from e

    return url, datetime.utcnow() + timedelta(seconds=expires_in)


def delete_object(s3_key: str) -> bool:
    """
    Delete an object from S3.

    Returns:
        True if successful, False otherwise
    """
    try:
        get_s3_client().delete_object(Bucket=S3_BUCKET_NAME, Key=s3_key)
        return True
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"⚠️ Failed to delete {s3_key} from S3: {e}")
        return False
