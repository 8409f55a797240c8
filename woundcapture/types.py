"""Common dataclasses and type aliases used across the woundcapture package."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

# Corner order: x1, y1, x2, y2 (pixel coordinates)
XYXY = Tuple[float, float, float, float]
FrameSize = Tuple[int, int]

DEFAULT_FRAME_SIZE: FrameSize = (640, 480)


class Distance(str, Enum):
    TOO_FAR = "too-far"
    TOO_CLOSE = "too-close"
    IDEAL = "ideal"
    UNKNOWN = "unknown"


class Lighting(str, Enum):
    TOO_DARK = "too-dark"
    TOO_BRIGHT = "too-bright"
    IDEAL = "ideal"
    UNKNOWN = "unknown"


class DetectionSource(str, Enum):
    """Which detection strategy produced the candidates of a cycle."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True, eq=False)
class Frame:
    """Immutable pixel snapshot taken from a camera stream.

    ``pixels`` is an H x W x C uint8 array. OpenCV delivers ``BGR``; frames
    coming from browser-style canvases are ``RGBA``.
    """

    pixels: np.ndarray
    channel_order: str = "BGR"
    timestamp: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        pixels = np.asarray(self.pixels)
        if pixels.ndim == 2:
            pixels = pixels[:, :, None]
        if pixels.ndim != 3:
            raise ValueError(f"Frame pixels must be HxWxC, got shape {pixels.shape}")
        if pixels.shape[2] != len(self.channel_order) and pixels.shape[2] != 1:
            raise ValueError(
                f"Channel order {self.channel_order!r} does not match {pixels.shape[2]} channels"
            )
        if pixels.flags.writeable:
            pixels = pixels.copy()
            pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> FrameSize:
        return self.width, self.height

    def channel(self, name: str) -> np.ndarray:
        """Return a single colour plane by name (``R``, ``G``, ``B`` or ``A``)."""
        if self.pixels.shape[2] == 1:
            return self.pixels[:, :, 0]
        return self.pixels[:, :, self.channel_order.index(name)]

    def rgb(self) -> np.ndarray:
        """Return an H x W x 3 RGB view (grayscale frames are broadcast)."""
        if self.pixels.shape[2] == 1:
            return np.repeat(self.pixels, 3, axis=2)
        order = [self.channel_order.index(c) for c in "RGB"]
        return self.pixels[:, :, order]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in pixel space, stored as origin + extent."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_xyxy(cls, box: XYXY) -> "BoundingBox":
        x1, y1, x2, y2 = box
        return cls(float(x1), float(y1), float(x2 - x1), float(y2 - y1))

    def as_xyxy(self) -> XYXY:
        return self.x, self.y, self.x + self.width, self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @property
    def aspect_ratio(self) -> float:
        """Width over height; zero for degenerate boxes."""
        if self.height <= 0:
            return 0.0
        return self.width / self.height

    def clip(self, frame_width: float, frame_height: float) -> "BoundingBox":
        x1, y1, x2, y2 = self.as_xyxy()
        x1 = min(max(0.0, x1), float(frame_width))
        y1 = min(max(0.0, y1), float(frame_height))
        x2 = min(max(0.0, x2), float(frame_width))
        y2 = min(max(0.0, y2), float(frame_height))
        return BoundingBox(x1, y1, max(0.0, x2 - x1), max(0.0, y2 - y1))


@dataclass(frozen=True)
class DetectionCandidate:
    """Region hypothesized to contain the subject."""

    bbox: BoundingBox
    label: str
    confidence: float


@dataclass(frozen=True)
class Keypoint:
    x: float
    y: float
    score: float
    name: str = ""


@dataclass(frozen=True)
class DetectionResult:
    """Candidates of one cycle tagged with the strategy that produced them."""

    source: DetectionSource
    candidates: Tuple[DetectionCandidate, ...] = ()

    @classmethod
    def primary(cls, candidates: List[DetectionCandidate]) -> "DetectionResult":
        return cls(DetectionSource.PRIMARY, tuple(candidates))

    @classmethod
    def fallback(cls, candidates: List[DetectionCandidate]) -> "DetectionResult":
        return cls(DetectionSource.FALLBACK, tuple(candidates))

    @classmethod
    def none(cls) -> "DetectionResult":
        return cls(DetectionSource.NONE, ())


@dataclass(frozen=True)
class DetectionStatus:
    """Per-cycle framing status; replaced wholesale, never merged."""

    subject_present: bool
    distance: Distance
    lighting: Lighting
    bbox: Optional[BoundingBox] = None

    @classmethod
    def initial(cls) -> "DetectionStatus":
        return cls(False, Distance.UNKNOWN, Lighting.UNKNOWN, None)


@dataclass(frozen=True)
class PositionGuidance:
    """Directions the subject should move to reach frame center."""

    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False

    @property
    def centered(self) -> bool:
        return not (self.left or self.right or self.up or self.down)

    def directions(self) -> List[str]:
        return [name for name in ("left", "right", "up", "down") if getattr(self, name)]


@dataclass(frozen=True)
class GuidanceResult:
    """Everything a host UI needs after one detection cycle."""

    status: DetectionStatus
    guidance: PositionGuidance
    ready: bool
    message: str
    tone: str
    hints: Tuple[str, ...] = ()
    score: Optional[float] = None
    source: DetectionSource = DetectionSource.NONE
    frame_size: FrameSize = DEFAULT_FRAME_SIZE
    sequence: int = 0
    label: Optional[str] = None

    def as_row(self) -> dict:
        """Flatten into a dict suitable for tabular logs."""
        bbox = self.status.bbox
        return {
            "sequence": self.sequence,
            "subject_present": self.status.subject_present,
            "distance": self.status.distance.value,
            "lighting": self.status.lighting.value,
            "ready": self.ready,
            "message": self.message,
            "tone": self.tone,
            "source": self.source.value,
            "label": self.label,
            "score": self.score,
            "bbox_x": bbox.x if bbox else None,
            "bbox_y": bbox.y if bbox else None,
            "bbox_w": bbox.width if bbox else None,
            "bbox_h": bbox.height if bbox else None,
            "frame_w": self.frame_size[0],
            "frame_h": self.frame_size[1],
            "directions": ",".join(self.guidance.directions()),
        }
