"""Edge-density heuristic detector used when the primary model comes up empty."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from woundcapture.config import FallbackConfig
from woundcapture.types import BoundingBox, DetectionCandidate, Frame

LOGGER = logging.getLogger("woundcapture.detectors.edges")


def edge_strength(rgb: np.ndarray, step: int = 4) -> np.ndarray:
    """Edge map on a grid sampled every ``step`` pixels.

    Each sampled pixel scores the summed absolute difference to its right and
    lower grid neighbours across the colour channels. The last row and column
    have no neighbours and score only the available direction.
    """
    grid = rgb[::step, ::step].astype(np.int32)
    strength = np.zeros(grid.shape[:2], dtype=np.int32)
    if grid.shape[1] > 1:
        strength[:, :-1] += np.abs(grid[:, 1:] - grid[:, :-1]).sum(axis=2)
    if grid.shape[0] > 1:
        strength[:-1, :] += np.abs(grid[1:, :] - grid[:-1, :]).sum(axis=2)
    return strength


class EdgeDensityDetector:
    """Finds sharp-edged rectangular objects against soft backgrounds."""

    def __init__(self, config: Optional[FallbackConfig] = None) -> None:
        self.config = config or FallbackConfig()

    def region(self, frame: Frame) -> Optional[BoundingBox]:
        cfg = self.config
        step = max(1, int(cfg.grid_step))
        strength = edge_strength(frame.rgb(), step)
        rows, cols = np.nonzero(strength > cfg.edge_threshold)
        if rows.size < cfg.min_edge_pixels:
            return None
        x1 = float(cols.min() * step)
        y1 = float(rows.min() * step)
        x2 = float(min(frame.width, (cols.max() + 1) * step))
        y2 = float(min(frame.height, (rows.max() + 1) * step))
        return BoundingBox(x1, y1, x2 - x1, y2 - y1)

    def plausible(self, bbox: BoundingBox, frame_width: int, frame_height: int) -> bool:
        cfg = self.config
        if bbox.width < cfg.min_side_px or bbox.height < cfg.min_side_px:
            return False
        if bbox.width > cfg.max_side_frac * frame_width or bbox.height > cfg.max_side_frac * frame_height:
            return False
        low, high = cfg.aspect_range
        return low <= bbox.aspect_ratio <= high

    def detect(self, frame: Frame) -> List[DetectionCandidate]:
        bbox = self.region(frame)
        if bbox is None:
            return []
        if not self.plausible(bbox, frame.width, frame.height):
            LOGGER.debug(
                "Edge region rejected size=%.0fx%.0f aspect=%.2f",
                bbox.width,
                bbox.height,
                bbox.aspect_ratio,
            )
            return []
        return [DetectionCandidate(bbox=bbox, label=self.config.label, confidence=self.config.confidence)]
