"""Anonymous visitor fingerprints."""
from __future__ import annotations

import hashlib
import hmac
from typing import Optional

UNKNOWN = "unknown"


def fingerprint_visitor(address: Optional[str], user_agent: Optional[str], secret: str) -> str:
    """HMAC the request address and user agent into a 64-character hex token.

    Neither input is stored. Missing values are replaced by a sentinel, so
    requests with no metadata at all share one fingerprint.
    """
    material = f"{address or UNKNOWN}-{user_agent or UNKNOWN}"
    return hmac.new(secret.encode("utf-8"), material.encode("utf-8"), hashlib.sha256).hexdigest()
