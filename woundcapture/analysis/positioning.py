"""Directional hints that move the subject towards frame center."""

from __future__ import annotations

from woundcapture.types import BoundingBox, PositionGuidance


def guide(
    bbox: BoundingBox,
    frame_width: float,
    frame_height: float,
    dead_zone: float = 0.1,
) -> PositionGuidance:
    """Return independent left/right/up/down flags.

    Each axis is flagged only when the box center sits further than
    ``dead_zone`` x min(frame_width, frame_height) from the frame center.
    """
    if frame_width <= 0 or frame_height <= 0:
        return PositionGuidance()
    tolerance = dead_zone * min(frame_width, frame_height)
    cx, cy = bbox.center
    dx = cx - frame_width / 2.0
    dy = cy - frame_height / 2.0
    return PositionGuidance(
        left=dx > tolerance,
        right=dx < -tolerance,
        up=dy > tolerance,
        down=dy < -tolerance,
    )
