"""
Webhook Security Module

Signature verification for payment provider webhooks (Standard Webhooks format):
- Constant-time signature comparison
- Timestamp validation against replayed deliveries
- Raw body is read once and returned to the caller for parsing
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from typing import Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def extract_svix_signing_key(secret: str) -> bytes:
    """
    Extract Standard Webhooks signing key bytes from a "whsec_" style secret.

    The HMAC key is the base64-decoded part after "whsec_". Secrets without the
    prefix are base64-decoded when possible and used as raw UTF-8 bytes otherwise.
    """
    try:
        if secret.startswith("whsec_"):
            return base64.b64decode(secret[6:])
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        return secret.encode("utf-8")


def compute_webhook_signature(secret: str, webhook_id: str, timestamp: str, body: bytes) -> str:
    """Base64 HMAC-SHA256 over "webhook-id.webhook-timestamp.payload" """
    signing_key = extract_svix_signing_key(secret)
    signed_message = b".".join([webhook_id.encode("utf-8"), timestamp.encode("utf-8"), body])
    return base64.b64encode(hmac.new(signing_key, signed_message, hashlib.sha256).digest()).decode(
        "utf-8"
    )


def verify_timestamp(timestamp: Optional[str], max_age: int = MAX_WEBHOOK_AGE_SECONDS) -> bool:
    """
    Verify webhook timestamp is within acceptable range.

    Args:
        timestamp: Unix timestamp as string
        max_age: Maximum age in seconds

    Returns:
        True if timestamp is valid, False otherwise
    """
    if not timestamp:
        return False

    try:
        age = abs(int(time.time()) - int(timestamp))
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {max_age}s)")
        return False

    return True


async def verify_payment_webhook(request: Request, secret: str) -> bytes:
    """
    Verify a Dodo Payments webhook and return its raw body.

    Headers:
      - 'webhook-id': unique delivery ID
      - 'webhook-timestamp': Unix timestamp (seconds)
      - 'webhook-signature': space separated list of 'v1,{base64 signature}'

    Raises:
        HTTPException(401) when any check fails
    """
    raw_body = await request.body()

    signature_header = request.headers.get("webhook-signature", "")
    timestamp = request.headers.get("webhook-timestamp", "")
    webhook_id = request.headers.get("webhook-id", "")

    logger.info(f"📥 Payment webhook received: id={webhook_id or 'unknown'}")

    if not webhook_id or not signature_header or not timestamp:
        logger.error("❌ Missing webhook signature headers")
        raise HTTPException(status_code=401, detail="Missing webhook signature")

    if not verify_timestamp(timestamp):
        logger.error("❌ Webhook timestamp expired or invalid")
        raise HTTPException(status_code=401, detail="Webhook timestamp expired")

    expected_signature = compute_webhook_signature(secret, webhook_id, timestamp, raw_body)

    # Key rotation sends several signatures separated by spaces
    for versioned in signature_header.split(" "):
        version, _, received_signature = versioned.partition(",")
        if version == "v1" and constant_time_compare(expected_signature, received_signature):
            logger.info(f"✅ Webhook signature verified: {webhook_id}")
            return raw_body

    logger.error(f"❌ Webhook signature verification failed: {webhook_id}")
    raise HTTPException(status_code=401, detail="Invalid webhook signature")
