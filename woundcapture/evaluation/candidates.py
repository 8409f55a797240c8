"""Pick the detection candidate that best matches the subject profile."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from woundcapture.config import SubjectProfile
from woundcapture.types import DetectionCandidate

LOGGER = logging.getLogger("woundcapture.evaluation")


@dataclass(frozen=True)
class EvaluatedCandidate:
    candidate: DetectionCandidate
    score: float


def _within(value: float, bounds: Tuple[float, float]) -> bool:
    low, high = bounds
    return low <= value <= high


class CandidateEvaluator:
    """Hard shape filters followed by multiplicative score boosts."""

    def __init__(self, profile: Optional[SubjectProfile] = None) -> None:
        self.profile = profile or SubjectProfile()

    def passes_filters(self, candidate: DetectionCandidate, frame_width: float, frame_height: float) -> bool:
        frame_area = float(frame_width) * float(frame_height)
        if frame_area <= 0 or candidate.bbox.height <= 0:
            return False
        if not _within(candidate.bbox.aspect_ratio, self.profile.aspect_range):
            return False
        return _within(candidate.bbox.area / frame_area, self.profile.area_range)

    def score(self, candidate: DetectionCandidate, frame_width: float, frame_height: float) -> float:
        profile = self.profile
        area_ratio = candidate.bbox.area / (float(frame_width) * float(frame_height))
        score = float(candidate.confidence)
        if _within(candidate.bbox.aspect_ratio, profile.ideal_aspect_range):
            score *= profile.aspect_boost
        if _within(area_ratio, profile.ideal_area_range):
            score *= profile.area_boost
        if candidate.label == profile.target_label:
            score *= profile.label_boost
        return score

    def evaluate(
        self,
        candidates: Iterable[DetectionCandidate],
        frame_width: float,
        frame_height: float,
    ) -> Optional[EvaluatedCandidate]:
        """Return the highest-scoring candidate; ties keep the first seen."""
        best: Optional[EvaluatedCandidate] = None
        rejected = 0
        for candidate in candidates:
            if not self.passes_filters(candidate, frame_width, frame_height):
                rejected += 1
                continue
            score = self.score(candidate, frame_width, frame_height)
            if best is None or score > best.score:
                best = EvaluatedCandidate(candidate=candidate, score=score)
        if rejected:
            LOGGER.debug("Rejected %d candidates outside profile %s bands", rejected, self.profile.name)
        return best
