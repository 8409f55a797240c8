"""Primary-then-heuristic detection chain with tagged results."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from woundcapture.types import DetectionCandidate, DetectionResult, Frame

LOGGER = logging.getLogger("woundcapture.detectors.fallback")


class Detector(Protocol):
    def detect(self, frame: Frame) -> List[DetectionCandidate]: ...


class FallbackChainDetector:
    """Runs the primary detector and falls back to a heuristic when it is unsure.

    Primary candidates below ``confidence_floor`` are discarded. When none
    survive, the fallback runs and its candidates replace the primary ones.
    Errors from either strategy count as "no candidates".
    """

    def __init__(
        self,
        primary: Optional[Detector],
        fallback: Optional[Detector] = None,
        confidence_floor: float = 0.3,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.confidence_floor = confidence_floor

    def _safe_detect(self, detector: Detector, name: str, frame: Frame) -> List[DetectionCandidate]:
        try:
            return list(detector.detect(frame))
        except Exception as exc:
            LOGGER.warning("%s detector failed on frame %dx%d: %s", name, frame.width, frame.height, exc)
            LOGGER.debug("%s detector stack trace", name, exc_info=True)
            return []

    def detect_tagged(self, frame: Frame) -> DetectionResult:
        primary: List[DetectionCandidate] = []
        if self.primary is not None:
            raw = self._safe_detect(self.primary, "Primary", frame)
            primary = [c for c in raw if c.confidence >= self.confidence_floor]
            if len(primary) < len(raw):
                LOGGER.debug(
                    "Dropped %d primary candidates below confidence floor %.2f",
                    len(raw) - len(primary),
                    self.confidence_floor,
                )
        if primary:
            return DetectionResult.primary(primary)
        if self.fallback is None:
            return DetectionResult.none()
        fallback = self._safe_detect(self.fallback, "Fallback", frame)
        if fallback:
            return DetectionResult.fallback(fallback)
        return DetectionResult.none()

    def detect(self, frame: Frame) -> List[DetectionCandidate]:
        return list(self.detect_tagged(frame).candidates)
