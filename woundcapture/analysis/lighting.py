"""Ambient lighting classification from frame luminance."""

from __future__ import annotations

import numpy as np

from woundcapture.types import Frame, Lighting

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def average_brightness(frame: Frame, stride: int = 10) -> float:
    """Mean perceived brightness of every ``stride``-th pixel (0-255 scale)."""
    if stride < 1:
        raise ValueError("stride must be >= 1")
    rgb = frame.rgb().reshape(-1, 3)[::stride].astype(np.float64)
    if rgb.size == 0:
        return 0.0
    luma = rgb @ np.asarray(LUMA_WEIGHTS)
    return float(luma.mean())


def classify_lighting(
    frame: Frame,
    min_brightness: float = 50.0,
    max_brightness: float = 200.0,
    stride: int = 10,
) -> Lighting:
    """Thresholds are exclusive: a mean exactly on either bound is ideal."""
    brightness = average_brightness(frame, stride)
    if brightness < min_brightness:
        return Lighting.TOO_DARK
    if brightness > max_brightness:
        return Lighting.TOO_BRIGHT
    return Lighting.IDEAL
