"""Referrer normalization for the per-day referrer histogram."""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

DIRECT = "direct"
OTHER = "other"


def normalize_referrer(referrer: Optional[str]) -> str:
    """Reduce a referrer URL to its hostname without a leading ``www.``.

    Absent referrers and the ``direct`` sentinel map to ``"direct"``; anything
    that does not parse as an absolute URL maps to ``"other"``.
    """
    if referrer is None:
        return DIRECT
    referrer = referrer.strip()
    if not referrer or referrer.lower() == DIRECT:
        return DIRECT

    try:
        parsed = urlparse(referrer)
        hostname = parsed.hostname
    except ValueError:
        return OTHER
    if not parsed.scheme or not hostname:
        return OTHER

    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname or OTHER
