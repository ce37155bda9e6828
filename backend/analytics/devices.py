"""Coarse device classification from user-agent strings."""
from __future__ import annotations

import re
from enum import Enum
from typing import Optional


class DeviceClass(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"


# Tablets first: iPads and Android tablets also match some mobile patterns.
TABLET_INDICATORS = [
    r"iPad",
    r"Tablet",
    r"Kindle",
    r"Silk/",
    r"Android(?!.*Mobile)",
]

MOBILE_INDICATORS = [
    r"Mobile",
    r"iPhone",
    r"iPod",
    r"IEMobile",
    r"Opera Mini",
    r"BlackBerry",
    r"Windows Phone",
]


def classify_device(user_agent: Optional[str]) -> DeviceClass:
    if not user_agent:
        return DeviceClass.DESKTOP

    for pattern in TABLET_INDICATORS:
        if re.search(pattern, user_agent, re.IGNORECASE):
            return DeviceClass.TABLET
    for pattern in MOBILE_INDICATORS:
        if re.search(pattern, user_agent, re.IGNORECASE):
            return DeviceClass.MOBILE
    return DeviceClass.DESKTOP
