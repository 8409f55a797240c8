"""Build the configured detection chain."""

from __future__ import annotations

import logging
from typing import Optional

from woundcapture.config import GuidanceConfig
from woundcapture.detectors.edges import EdgeDensityDetector
from woundcapture.detectors.fallback import Detector, FallbackChainDetector
from woundcapture.detectors.keypoints import KeypointBoxDetector
from woundcapture.detectors.pose import YOLOPoseEstimator
from woundcapture.detectors.yolo_objects import YOLOObjectDetector
from woundcapture.errors import DetectorLoadError

LOGGER = logging.getLogger("woundcapture.detectors.loader")


def build_primary(config: GuidanceConfig) -> Detector:
    profile = config.profile
    det = config.detection
    if profile.detector == "pose":
        estimator = YOLOPoseEstimator(config.weights, device=det.device, conf_thres=det.conf_thres)
        return KeypointBoxDetector(estimator, label=profile.target_label, params=profile.keypoints)
    return YOLOObjectDetector(
        config.weights,
        device=det.device,
        conf_thres=det.conf_thres,
        iou_thres=det.iou_thres,
        class_filter=profile.class_filter,
    )


def build_detector(config: GuidanceConfig, primary: Optional[Detector] = None) -> FallbackChainDetector:
    """Compose primary + edge fallback; ``primary`` overrides the YOLO model."""
    if primary is None:
        primary = build_primary(config)
    fallback = EdgeDensityDetector(config.fallback) if config.fallback.enabled else None
    return FallbackChainDetector(primary, fallback, confidence_floor=config.fallback.confidence_floor)


class DetectorLoader:
    """One-shot loader used by capture sessions."""

    def __init__(self, config: GuidanceConfig) -> None:
        self.config = config

    def load(self) -> FallbackChainDetector:
        try:
            detector = build_detector(self.config)
        except DetectorLoadError:
            raise
        except Exception as exc:
            raise DetectorLoadError(f"Detector initialisation failed: {exc}") from exc
        LOGGER.info(
            "Detection chain ready profile=%s primary=%s fallback=%s",
            self.config.profile.name,
            type(detector.primary).__name__,
            type(detector.fallback).__name__ if detector.fallback else None,
        )
        return detector
