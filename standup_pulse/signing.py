"""Slack request signature verification.

Slack signs every webhook delivery with ``v0=HMAC-SHA256(secret,
"v0:<timestamp>:<raw body>")``. Verification has to run on the raw bytes,
before the body is decoded.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Optional

VERSION = "v0"
DEFAULT_MAX_AGE_SECONDS = 300


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def compute_signature(secret: str, timestamp: str, raw_body: str | bytes) -> str:
    base = b":".join((VERSION.encode(), timestamp.encode(), _as_bytes(raw_body)))
    digest = hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{VERSION}={digest}"


def verify_signature(
    secret: str,
    raw_body: str | bytes,
    timestamp: Optional[str],
    signature: Optional[str],
    *,
    now: Optional[float] = None,
    max_age: int = DEFAULT_MAX_AGE_SECONDS,
) -> bool:
    """Return True only for a fresh request signed with ``secret``.

    Every rejection is a plain ``False`` so callers cannot tell a stale
    timestamp from a bad digest.
    """

    if not secret or not timestamp or not signature:
        return False
    try:
        issued_at = int(timestamp)
    except ValueError:
        return False

    now = time.time() if now is None else now
    if abs(now - issued_at) > max_age:
        return False

    expected = compute_signature(secret, timestamp, raw_body).encode("utf-8")
    provided = signature.encode("utf-8")
    if len(expected) != len(provided):
        return False
    return hmac.compare_digest(expected, provided)


__all__ = ["compute_signature", "verify_signature", "DEFAULT_MAX_AGE_SECONDS"]
