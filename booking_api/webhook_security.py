"""
Webhook Security Module

Standard Webhooks signature verification for payment provider events:
- Signed message is webhook-id.webhook-timestamp.payload (byte-perfect)
- Constant-time signature comparison
- Timestamp tolerance window against replays
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from collections.abc import Mapping
from typing import Optional

from .config import WEBHOOK_TOLERANCE_SECONDS
from .errors import WebhookSignatureError

logger = logging.getLogger(__name__)

SIGNATURE_VERSION = "v1"


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def extract_signing_key(secret: str) -> bytes:
    """
    Extract Standard Webhooks signing key bytes from a whsec_ style secret.

    - Incoming secret typically looks like: "whsec_BASE64KEY"
    - The HMAC key is the base64-decoded part after "whsec_"
    - If not base64, fall back to the UTF-8 bytes of the secret
    """
    b64_part = secret[6:] if secret.startswith("whsec_") else secret
    try:
        return base64.b64decode(b64_part, validate=True)
    except (binascii.Error, ValueError):
        return secret.encode("utf-8")


def compute_signature(secret: str, webhook_id: str, timestamp: str, payload: bytes) -> str:
    """Base64 HMAC-SHA256 over webhook-id.webhook-timestamp.payload"""
    signed_message = b".".join([webhook_id.encode("utf-8"), timestamp.encode("utf-8"), payload])
    digest = hmac.new(extract_signing_key(secret), signed_message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_timestamp(
    timestamp: Optional[str],
    max_age: int = WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> bool:
    """
    Verify webhook timestamp is within acceptable range.

    Args:
        timestamp: Unix timestamp as string
        max_age: Maximum skew in seconds, either direction
        now: Current time override

    Returns:
        True if timestamp is valid, False otherwise
    """
    if not timestamp:
        return False

    try:
        webhook_time = int(timestamp)
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    current_time = int(now if now is not None else time.time())
    age = abs(current_time - webhook_time)
    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp outside tolerance: {age}s (max: {max_age}s)")
        return False
    return True


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        # Plain dicts aren't case-insensitive like Starlette's Headers
        for key, candidate in headers.items():
            if key.lower() == name:
                return candidate
    return value or ""


def verify_webhook_signature(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: Optional[str],
    tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> str:
    """
    Verify a Standard Webhooks signed request.

    The signature header may carry several space-separated "v1,<sig>"
    entries (during secret rotation); any match is accepted.

    Returns:
        The webhook id

    Raises:
        WebhookSignatureError: On any header, timestamp or signature failure
    """
    if not secret:
        logger.error("❌ Webhook secret not configured")
        raise WebhookSignatureError("Webhook secret not configured")

    webhook_id = _header(headers, "webhook-id")
    timestamp = _header(headers, "webhook-timestamp")
    signature_header = _header(headers, "webhook-signature")

    if not webhook_id or not timestamp or not signature_header:
        logger.error("❌ Missing webhook-id, webhook-timestamp or webhook-signature header")
        raise WebhookSignatureError("Missing webhook signature headers")

    if not verify_timestamp(timestamp, tolerance, now):
        raise WebhookSignatureError("Webhook timestamp expired or invalid")

    expected_signature = compute_signature(secret, webhook_id, timestamp, raw_body)
    for entry in signature_header.split():
        version, _, received_signature = entry.partition(",")
        if version == SIGNATURE_VERSION and constant_time_compare(
            expected_signature, received_signature
        ):
            logger.info(f"✅ Webhook signature verified: {webhook_id}")
            return webhook_id

    logger.error(f"❌ Webhook signature mismatch for {webhook_id} ({len(raw_body)} bytes)")
    raise WebhookSignatureError("Invalid webhook signature")


def create_webhook_signature(
    secret: str, payload: bytes, webhook_id: str, timestamp: Optional[int] = None
) -> dict[str, str]:
    """
    Create Standard Webhooks headers for testing or outgoing webhooks.

    Returns:
        Header map with webhook-id, webhook-timestamp and webhook-signature
    """
    ts = str(timestamp if timestamp is not None else int(time.time()))
    signature = compute_signature(secret, webhook_id, ts, payload)
    return {
        "webhook-id": webhook_id,
        "webhook-timestamp": ts,
        "webhook-signature": f"{SIGNATURE_VERSION},{signature}",
    }
