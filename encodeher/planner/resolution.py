"""
Rendition ladder planning.

The ladder always starts at the native resolution, followed by every named
tier that is strictly smaller than the source on its governing axis. Sources
at least as wide as 16:9 are scaled by width, taller ones by height.
"""

import math
from typing import Sequence

from ..models import Resolution

SIXTEEN_BY_NINE = 16 / 9

NAMED_RESOLUTIONS: tuple[Resolution, ...] = (
    Resolution("4k", 3840, 2160),
    Resolution("1440p", 2560, 1440),
    Resolution("1080p", 1920, 1080),
    Resolution("720p", 1280, 720),
)

FALLBACK_PREFERENCE = ("720p", "native")


def _round_even(value: float) -> int:
    """Round half up, then clear the low bit."""
    return int(math.floor(value + 0.5)) & ~1


def plan_resolutions(width: int, height: int) -> list[Resolution]:
    """
    Plan the rendition ladder for a source resolution.

    A source that exactly matches a tier does not repeat it; "native" already
    covers that size.

    Args:
        width: Native width in pixels
        height: Native height in pixels

    Returns:
        Ordered ladder, "native" first

    Raises:
        ValueError: If either dimension is not positive
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid source resolution {width}x{height}")

    resolutions = [Resolution("native", width, height)]

    if width / height >= SIXTEEN_BY_NINE:
        resolutions.extend(
            Resolution(tier.name, tier.w, _round_even(tier.w / width * height))
            for tier in NAMED_RESOLUTIONS
            if tier.w < width
        )
    else:
        resolutions.extend(
            Resolution(tier.name, _round_even(tier.h / height * width), tier.h)
            for tier in NAMED_RESOLUTIONS
            if tier.h < height
        )

    return resolutions


def pick_fallback_resolution(resolutions: Sequence[Resolution]) -> Resolution:
    """
    Pick the resolution for the single-file fallback encode.

    Args:
        resolutions: Planned ladder (never empty)

    Returns:
        The "720p" rung if planned, else "native", else the first rung
    """
    for name in FALLBACK_PREFERENCE:
        for resolution in resolutions:
            if resolution.name == name:
                return resolution
    return resolutions[0]
