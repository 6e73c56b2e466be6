"""Webhook signature check (``X-Line-Signature``)."""

from __future__ import annotations

import base64
import hashlib
import hmac


def compute_signature(channel_secret: str, body: bytes) -> str:
    """Return the base64 HMAC-SHA256 of *body* keyed by *channel_secret*."""
    digest = hmac.new(channel_secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_signature(channel_secret: str, body: bytes, signature: str | None) -> bool:
    if not channel_secret or not signature:
        return False
    return hmac.compare_digest(compute_signature(channel_secret, body), signature)
