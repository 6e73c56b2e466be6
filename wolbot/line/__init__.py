"""LINE Messaging API transport: webhook signatures, replies, rendering."""

from __future__ import annotations

from wolbot.line.client import LineAuthError, LineClient, LineClientError, LineConnectionError
from wolbot.line.messages import render_outcome
from wolbot.line.signature import compute_signature, verify_signature

__all__ = [
    "LineAuthError",
    "LineClient",
    "LineClientError",
    "LineConnectionError",
    "compute_signature",
    "render_outcome",
    "verify_signature",
]
