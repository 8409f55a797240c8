"""One detection cycle: frame -> lighting + detection -> readiness."""

from __future__ import annotations

import logging
from typing import Optional

from woundcapture.analysis.distance import classify_distance
from woundcapture.analysis.lighting import classify_lighting
from woundcapture.analysis.positioning import guide
from woundcapture.analysis.readiness import detail_hints, is_ready, status_message, status_tone
from woundcapture.config import GuidanceConfig
from woundcapture.detectors.fallback import Detector, FallbackChainDetector
from woundcapture.evaluation.candidates import CandidateEvaluator
from woundcapture.types import (
    DetectionResult,
    DetectionStatus,
    Distance,
    Frame,
    GuidanceResult,
    PositionGuidance,
)

LOGGER = logging.getLogger("woundcapture.pipeline")


def idle_result(config: Optional[GuidanceConfig] = None) -> GuidanceResult:
    """Result shown before the first cycle completes."""
    config = config or GuidanceConfig()
    status = DetectionStatus.initial()
    return GuidanceResult(
        status=status,
        guidance=PositionGuidance(),
        ready=False,
        message=status_message(status, config.profile.messages),
        tone=status_tone(status),
    )


class GuidancePipeline:
    """Stateless per-frame analysis; safe to call from a worker thread."""

    def __init__(self, detector: Detector, config: Optional[GuidanceConfig] = None) -> None:
        self.config = config or GuidanceConfig()
        if not isinstance(detector, FallbackChainDetector):
            detector = FallbackChainDetector(
                detector,
                None,
                confidence_floor=self.config.fallback.confidence_floor,
            )
        self.detector = detector
        self.evaluator = CandidateEvaluator(self.config.profile)

    def detect(self, frame: Frame) -> DetectionResult:
        try:
            return self.detector.detect_tagged(frame)
        except Exception as exc:
            LOGGER.warning("Detection failed; treating frame as empty: %s", exc)
            return DetectionResult.none()

    def analyze(self, frame: Frame, sequence: int = 0) -> GuidanceResult:
        cfg = self.config
        lighting = classify_lighting(
            frame,
            cfg.lighting.min_brightness,
            cfg.lighting.max_brightness,
            cfg.lighting.sample_stride,
        )
        detection = self.detect(frame)
        best = self.evaluator.evaluate(detection.candidates, frame.width, frame.height)

        if best is None:
            status = DetectionStatus(False, Distance.UNKNOWN, lighting, None)
            guidance = PositionGuidance()
        else:
            bbox = best.candidate.bbox
            distance = classify_distance(bbox, frame.height, cfg.distance.min_ratio, cfg.distance.max_ratio)
            status = DetectionStatus(True, distance, lighting, bbox)
            guidance = guide(bbox, frame.width, frame.height, cfg.positioning.dead_zone)

        messages = cfg.profile.messages
        result = GuidanceResult(
            status=status,
            guidance=guidance,
            ready=is_ready(status),
            message=status_message(status, messages),
            tone=status_tone(status),
            hints=detail_hints(status, messages),
            score=best.score if best else None,
            source=detection.source,
            frame_size=frame.size,
            sequence=sequence,
            label=best.candidate.label if best else None,
        )
        LOGGER.debug(
            "Cycle %d source=%s present=%s distance=%s lighting=%s ready=%s",
            sequence,
            detection.source.value,
            status.subject_present,
            status.distance.value,
            status.lighting.value,
            result.ready,
        )
        return result
