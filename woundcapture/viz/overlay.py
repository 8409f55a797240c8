"""Overlay rendering for the guidance preview window."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from woundcapture.analysis.readiness import TONE_ADJUST, TONE_READY, TONE_SEARCHING
from woundcapture.types import GuidanceResult

# BGR
TONE_COLORS: Dict[str, Tuple[int, int, int]] = {
    TONE_SEARCHING: (8, 179, 234),
    TONE_ADJUST: (68, 68, 239),
    TONE_READY: (94, 197, 34),
}
BOX_COLOR = (250, 165, 96)

ARROWS = {
    "left": (-1, 0),
    "right": (1, 0),
    "up": (0, -1),
    "down": (0, 1),
}


# Hershey fonts only cover ASCII.
TEXT_REPLACEMENTS = {
    "\u2022": "|",
    "\u2013": "-",
    "\u2014": "-",
}


def overlay_text(text: str) -> str:
    """Map a status line onto characters ``cv2.putText`` can draw."""
    for char, replacement in TEXT_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text.encode("ascii", "replace").decode("ascii")


def _guide_square(width: int, height: int, fraction: float = 0.5) -> Tuple[int, int, int, int]:
    side = int(min(width, height) * fraction)
    x1 = (width - side) // 2
    y1 = (height - side) // 2
    return x1, y1, x1 + side, y1 + side


def draw_guidance(
    image: np.ndarray,
    result: GuidanceResult,
    dim: float = 0.4,
    model_loading: bool = False,
    camera_error: Optional[str] = None,
) -> np.ndarray:
    """Return a copy of ``image`` with the framing guide, box and status drawn."""
    canvas = image.copy()
    height, width = canvas.shape[:2]
    color = TONE_COLORS.get(result.tone, TONE_COLORS[TONE_SEARCHING])

    gx1, gy1, gx2, gy2 = _guide_square(width, height)
    if dim > 0:
        shade = (canvas * (1.0 - dim)).astype(canvas.dtype)
        shade[gy1:gy2, gx1:gx2] = canvas[gy1:gy2, gx1:gx2]
        canvas = shade
    cv2.rectangle(canvas, (gx1, gy1), (gx2, gy2), color, 3)

    bbox = result.status.bbox
    if bbox is not None:
        # Boxes live in analysis-frame space; rescale if the preview differs.
        fw, fh = result.frame_size
        sx = width / float(fw or width)
        sy = height / float(fh or height)
        x1, y1, x2, y2 = bbox.as_xyxy()
        cv2.rectangle(
            canvas,
            (int(x1 * sx), int(y1 * sy)),
            (int(x2 * sx), int(y2 * sy)),
            TONE_COLORS[TONE_READY] if result.ready else BOX_COLOR,
            2,
        )

    message = camera_error or ("Loading AI model..." if model_loading else result.message)
    cv2.putText(canvas, overlay_text(message), (16, 32), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
    if result.hints and not camera_error:
        cv2.putText(canvas, overlay_text("  ".join(result.hints)), (16, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.55, (255, 255, 255), 1)

    cx, cy = width // 2, height // 2
    for direction in result.guidance.directions():
        dx, dy = ARROWS[direction]
        tip = (cx + dx * (gx2 - gx1) // 2 + dx * 24, cy + dy * (gy2 - gy1) // 2 + dy * 24)
        tail = (cx + dx * (gx2 - gx1) // 2, cy + dy * (gy2 - gy1) // 2)
        cv2.arrowedLine(canvas, tail, tip, color, 3, tipLength=0.5)
    return canvas
