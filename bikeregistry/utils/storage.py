"""
Object storage utilities for bicycle photos and purchase invoices.
Handles upload to R2, key generation, public and signed URL generation, and validation.
"""

import logging
from datetime import datetime
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from ..config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)
from ..security_utils import sanitize_filename

logger = logging.getLogger(__name__)

# Validation constants
MAX_IMAGES_PER_BICYCLE = 4
MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
ALLOWED_IMAGE_MIME_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

MAX_INVOICE_SIZE_BYTES = 5 * 1024 * 1024  # 5MB
ALLOWED_INVOICE_MIME_TYPES = ["application/pdf", "image/jpeg", "image/jpg", "image/png"]

PRESIGNED_URL_EXPIRATION = 86400 * 7  # 7 days


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def validate_image_upload(mime_type: Optional[str], size_bytes: int) -> Optional[str]:
    """Return an error message when the image cannot be accepted, None otherwise"""
    if mime_type not in ALLOWED_IMAGE_MIME_TYPES:
        return "Image format not supported. Allowed formats: JPG, PNG, WebP"
    if size_bytes > MAX_IMAGE_SIZE_BYTES:
        return f"Image exceeds maximum size of {MAX_IMAGE_SIZE_BYTES // (1024 * 1024)}MB"
    if size_bytes == 0:
        return "Image file is empty"
    return None


def validate_invoice_upload(mime_type: Optional[str], size_bytes: int) -> Optional[str]:
    """Return an error message when the invoice cannot be accepted, None otherwise"""
    if mime_type not in ALLOWED_INVOICE_MIME_TYPES:
        return "File type not allowed. Only PDF, JPG and PNG are accepted"
    if size_bytes > MAX_INVOICE_SIZE_BYTES:
        return "File is too large. Maximum size is 5MB"
    if size_bytes == 0:
        return "Invoice file is empty"
    return None


def _timestamp() -> str:
    return str(int(datetime.utcnow().timestamp() * 1000))


def build_image_key(user_id: int, bicycle_id: int, filename: str) -> str:
    """
    Format: {user_id}/{bicycle_id}/{timestamp}-{filename}
    """
    return f"{user_id}/{bicycle_id}/{_timestamp()}-{sanitize_filename(filename)}"


def build_invoice_key(user_id: int, bicycle_id: int, filename: str) -> str:
    """
    Format: {user_id}/{bicycle_id}/invoice-{timestamp}-{filename}
    """
    return f"{user_id}/{bicycle_id}/invoice-{_timestamp()}-{sanitize_filename(filename)}"


def upload_file(key: str, content: bytes, content_type: str) -> None:
    """Upload bytes to the bucket; raises ClientError on failure"""
    r2 = get_r2_client()
    r2.put_object(
        Bucket=R2_BUCKET_NAME,
        Key=key,
        Body=content,
        ContentType=content_type,
        CacheControl="public, max-age=31536000",
    )
    logger.info(f"✅ Uploaded object to R2: {key}")


def delete_file(key: Optional[str]) -> bool:
    """Delete an object; failures are logged and reported as False"""
    if not key:
        return False
    try:
        r2 = get_r2_client()
        r2.delete_object(Bucket=R2_BUCKET_NAME, Key=key)
        logger.info(f"🗑️ Deleted object from R2: {key}")
        return True
    except ClientError as e:
        logger.warning(f"⚠️ Failed to delete R2 object {key}: {e}")
        return False


def generate_presigned_url(key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
    """Generate a signed GET URL for a private object"""
    r2 = get_r2_client()
    return r2.generate_presigned_url(
        "get_object",
        Params={"Bucket": R2_BUCKET_NAME, "Key": key},
        ExpiresIn=expiration,
    )


def public_url(key: str) -> str:
    """Public URL for an object; falls back to a signed URL when no public domain is configured"""
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"
    return generate_presigned_url(key)


def ensure_bucket() -> bool:
    """Create the bucket if it does not exist yet. Returns True when it was created."""
    r2 = get_r2_client()
    try:
        r2.head_bucket(Bucket=R2_BUCKET_NAME)
        logger.info(f"ℹ️ Bucket {R2_BUCKET_NAME} already exists")
        return False
    except ClientError as e:
        code = str(e.response.get("Error", {}).get("Code", ""))
        if code not in ("404", "NoSuchBucket", "NotFound"):
            raise
    r2.create_bucket(Bucket=R2_BUCKET_NAME)
    logger.info(f"✅ Created bucket {R2_BUCKET_NAME}")
    return True
