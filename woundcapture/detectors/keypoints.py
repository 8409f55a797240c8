"""Adapter turning joint keypoints into subject bounding boxes."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from woundcapture.config import KeypointBoxParams
from woundcapture.types import BoundingBox, DetectionCandidate, Frame, Keypoint

LOGGER = logging.getLogger("woundcapture.detectors.keypoints")


class PoseEstimator(Protocol):
    def estimate(self, frame: Frame) -> List[List[Keypoint]]: ...


def confident_keypoints(keypoints: Sequence[Keypoint], params: KeypointBoxParams) -> List[Keypoint]:
    wanted = set(params.keypoint_names)
    return [kp for kp in keypoints if kp.name in wanted and kp.score > params.keypoint_floor]


def synthesize_box(
    keypoints: Sequence[Keypoint],
    frame_width: float,
    frame_height: float,
    params: Optional[KeypointBoxParams] = None,
) -> Optional[BoundingBox]:
    """Estimate the subject region around its anchor joints.

    The box is padded horizontally by a fraction of the joint separation and
    extended well past the joints in ``params.direction``; a single joint
    falls back to ``default_separation``. The result is clipped to the frame.
    """
    params = params or KeypointBoxParams()
    points = confident_keypoints(keypoints, params)
    if not points:
        return None

    xs = [kp.x for kp in points]
    ys = [kp.y for kp in points]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    spread = (max_x - min_x) or params.default_separation
    separation = max(spread, params.min_separation)
    extension = max(separation * params.extension_factor, params.min_extension)
    horizontal = max(separation * params.horizontal_factor, params.min_horizontal_padding)

    x1 = max(0.0, min_x - horizontal)
    x2 = min(float(frame_width), max_x + horizontal)
    if params.direction == "down":
        y1 = max(0.0, min_y - params.near_padding)
        y2 = min(float(frame_height), max_y + extension)
    else:
        y1 = max(0.0, min_y - extension)
        y2 = min(float(frame_height), max_y + params.near_padding)
    if x2 <= x1 or y2 <= y1:
        return None
    return BoundingBox(x1, y1, x2 - x1, y2 - y1)


class KeypointBoxDetector:
    """Satisfies the detector interface on top of a pose estimator."""

    def __init__(self, estimator: PoseEstimator, label: str, params: Optional[KeypointBoxParams] = None) -> None:
        self.estimator = estimator
        self.label = label
        self.params = params or KeypointBoxParams()

    def detect(self, frame: Frame) -> List[DetectionCandidate]:
        candidates: List[DetectionCandidate] = []
        for pose in self.estimator.estimate(frame):
            bbox = synthesize_box(pose, frame.width, frame.height, self.params)
            if bbox is None:
                continue
            points = confident_keypoints(pose, self.params)
            confidence = sum(kp.score for kp in points) / len(points)
            candidates.append(DetectionCandidate(bbox=bbox, label=self.label, confidence=confidence))
        return candidates
