"""Apparent subject distance from bounding-box height."""

from __future__ import annotations

from woundcapture.types import BoundingBox, Distance


def height_ratio(bbox: BoundingBox, frame_height: float) -> float:
    if frame_height <= 0:
        return 0.0
    return bbox.height / float(frame_height)


def classify_distance(
    bbox: BoundingBox,
    frame_height: float,
    min_ratio: float = 0.2,
    max_ratio: float = 0.7,
) -> Distance:
    # Height alone keeps the metric independent of horizontal cropping.
    if frame_height <= 0:
        return Distance.UNKNOWN
    ratio = height_ratio(bbox, frame_height)
    if ratio < min_ratio:
        return Distance.TOO_FAR
    if ratio > max_ratio:
        return Distance.TOO_CLOSE
    return Distance.IDEAL
