"""Subject detectors: YOLO primaries, keypoint adapter and edge fallback."""

from woundcapture.detectors.edges import EdgeDensityDetector
from woundcapture.detectors.fallback import Detector, FallbackChainDetector
from woundcapture.detectors.keypoints import KeypointBoxDetector, synthesize_box

__all__ = [
    "Detector",
    "EdgeDensityDetector",
    "FallbackChainDetector",
    "KeypointBoxDetector",
    "synthesize_box",
]
