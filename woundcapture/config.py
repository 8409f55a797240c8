"""Guidance configuration dataclasses and YAML loading."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from woundcapture.errors import ConfigError
from woundcapture.io_utils import load_yaml

LOGGER = logging.getLogger("woundcapture.config")

Range = Tuple[float, float]


@dataclass
class LightingConfig:
    # Average perceived brightness on a 0-255 scale
    min_brightness: float = 50.0
    max_brightness: float = 200.0
    sample_stride: int = 10


@dataclass
class DistanceConfig:
    # Subject height / frame height
    min_ratio: float = 0.2
    max_ratio: float = 0.7


@dataclass
class PositioningConfig:
    # Fraction of the smaller frame dimension
    dead_zone: float = 0.1


@dataclass
class MessageCatalog:
    """User-facing wording for the readiness gate."""

    not_present: str = "Place subject in frame"
    present: str = "Subject detected"
    too_far: str = "Move closer"
    too_close: str = "Move farther"
    distance_ok: str = "Distance looks good"
    too_dark: str = "Find brighter lighting"
    too_bright: str = "Reduce lighting"
    ready: str = "Good position - Ready!"
    separator: str = " • "
    hint_too_far: str = "Too far"
    hint_too_close: str = "Too close"
    hint_too_dark: str = "Too dark"
    hint_too_bright: str = "Too bright"


@dataclass
class KeypointBoxParams:
    """Box synthesis around joint keypoints (e.g. ankles for a foot)."""

    keypoint_names: Tuple[str, ...] = ("left_ankle", "right_ankle")
    keypoint_floor: float = 0.3
    default_separation: float = 60.0
    min_separation: float = 40.0
    horizontal_factor: float = 0.4
    min_horizontal_padding: float = 25.0
    extension_factor: float = 2.0
    min_extension: float = 100.0
    near_padding: float = 10.0
    # Side of the keypoints the subject extends towards
    direction: str = "down"


@dataclass
class SubjectProfile:
    """Shape heuristics and detector choice for one physical subject."""

    name: str = "generic"
    target_label: str = "subject"
    # "pose" synthesizes boxes from keypoints, "object" uses direct boxes
    detector: str = "object"
    weights: str = "yolov8n.pt"
    class_filter: Tuple[str, ...] = ()
    aspect_range: Range = (0.2, 3.0)
    ideal_aspect_range: Range = (0.5, 1.5)
    area_range: Range = (0.005, 0.85)
    ideal_area_range: Range = (0.03, 0.25)
    aspect_boost: float = 1.5
    area_boost: float = 1.3
    label_boost: float = 2.0
    keypoints: KeypointBoxParams = field(default_factory=KeypointBoxParams)
    messages: MessageCatalog = field(default_factory=MessageCatalog)


PROFILES: Dict[str, SubjectProfile] = {
    "foot": SubjectProfile(
        name="foot",
        target_label="foot",
        detector="pose",
        weights="yolov8n-pose.pt",
        aspect_range=(0.2, 3.0),
        ideal_aspect_range=(0.4, 1.2),
        area_range=(0.005, 0.85),
        ideal_area_range=(0.03, 0.25),
        messages=MessageCatalog(
            not_present="Place your foot in the frame",
            present="Foot detected",
        ),
    ),
    "handheld": SubjectProfile(
        name="handheld",
        target_label="cell phone",
        detector="object",
        weights="yolov8n.pt",
        class_filter=("cell phone", "book", "remote"),
        aspect_range=(0.3, 2.5),
        ideal_aspect_range=(0.45, 0.75),
        area_range=(0.01, 0.8),
        ideal_area_range=(0.03, 0.25),
        messages=MessageCatalog(
            not_present="Place the object in the frame",
            present="Object detected",
        ),
    ),
}


@dataclass
class DetectionConfig:
    weights: Optional[str] = None  # falls back to the profile weights
    device: Optional[str] = None
    conf_thres: float = 0.25
    iou_thres: float = 0.5


@dataclass
class FallbackConfig:
    """Edge-density heuristic used when the primary detector comes up empty."""

    enabled: bool = True
    confidence_floor: float = 0.3
    grid_step: int = 4
    edge_threshold: float = 150.0
    min_edge_pixels: int = 50
    confidence: float = 0.7
    label: str = "edge_region"
    aspect_range: Range = (0.4, 2.2)
    min_side_px: float = 40.0
    max_side_frac: float = 0.8


@dataclass
class SessionConfig:
    interval_s: float = 0.5
    jpeg_quality: int = 80
    camera_device: Union[int, str] = 0
    facing_mode: str = "environment"
    ideal_width: int = 1280
    ideal_height: int = 720


@dataclass
class GuidanceConfig:
    lighting: LightingConfig = field(default_factory=LightingConfig)
    distance: DistanceConfig = field(default_factory=DistanceConfig)
    positioning: PositioningConfig = field(default_factory=PositioningConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    profile: SubjectProfile = field(default_factory=lambda: replace(PROFILES["foot"]))
    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GuidanceConfig":
        if not isinstance(data, dict):
            raise ConfigError(f"Guidance config must be a mapping, got {type(data).__name__}")
        data = dict(data)
        base = cls()
        profile_data = data.pop("profile", None)
        if profile_data is not None:
            base = replace(base, profile=_resolve_profile(profile_data))
        config = _merge(base, data, "guidance")
        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def weights(self) -> str:
        return self.detection.weights or self.profile.weights

    def validate(self) -> None:
        if self.lighting.min_brightness >= self.lighting.max_brightness:
            raise ConfigError("lighting.min_brightness must be below lighting.max_brightness")
        if self.lighting.sample_stride < 1:
            raise ConfigError("lighting.sample_stride must be >= 1")
        if self.distance.min_ratio >= self.distance.max_ratio:
            raise ConfigError("distance.min_ratio must be below distance.max_ratio")
        if not 0.0 <= self.positioning.dead_zone < 0.5:
            raise ConfigError("positioning.dead_zone must be within [0, 0.5)")
        if self.fallback.grid_step < 1:
            raise ConfigError("fallback.grid_step must be >= 1")
        if self.session.interval_s <= 0:
            raise ConfigError("session.interval_s must be positive")
        if not 1 <= self.session.jpeg_quality <= 100:
            raise ConfigError("session.jpeg_quality must be within [1, 100]")
        profile = self.profile
        if profile.detector not in ("pose", "object"):
            raise ConfigError(f"profile.detector must be 'pose' or 'object', got {profile.detector!r}")
        if profile.keypoints.direction not in ("up", "down"):
            raise ConfigError("profile.keypoints.direction must be 'up' or 'down'")
        for name in ("aspect_range", "ideal_aspect_range", "area_range", "ideal_area_range"):
            low, high = getattr(profile, name)
            if low > high:
                raise ConfigError(f"profile.{name} must be ordered (low, high)")
        low, high = self.fallback.aspect_range
        if low > high:
            raise ConfigError("fallback.aspect_range must be ordered (low, high)")


def _resolve_profile(data: Any) -> SubjectProfile:
    if isinstance(data, str):
        if data not in PROFILES:
            raise ConfigError(f"Unknown subject profile {data!r}; choose from {sorted(PROFILES)}")
        return replace(PROFILES[data])
    if not isinstance(data, dict):
        raise ConfigError("profile must be a preset name or a mapping")
    data = dict(data)
    preset = data.get("name")
    base = replace(PROFILES[preset]) if preset in PROFILES else SubjectProfile()
    return _merge(base, data, "profile")


def _merge(instance: Any, data: Any, section: str) -> Any:
    """Return ``instance`` with ``data`` applied, rejecting unknown keys."""
    if not isinstance(data, dict):
        raise ConfigError(f"Section {section!r} must be a mapping")
    valid = {f.name for f in fields(instance)}
    unknown = set(data) - valid
    if unknown:
        raise ConfigError(f"Unknown {section} keys: {sorted(unknown)}")
    updates: Dict[str, Any] = {}
    for key, value in data.items():
        current = getattr(instance, key)
        if is_dataclass(current):
            value = _merge(current, value, f"{section}.{key}")
        elif isinstance(current, tuple) and isinstance(value, list):
            value = tuple(value)
        updates[key] = value
    return replace(instance, **updates)


def load_config(path: Optional[Path], profile: Optional[str] = None) -> GuidanceConfig:
    """Load guidance config from YAML; missing path yields defaults."""
    data: Dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        data = load_yaml(path)
    if profile is not None:
        data["profile"] = profile
    config = GuidanceConfig.from_dict(data)
    LOGGER.info(
        "Guidance config profile=%s detector=%s interval=%.2fs lighting=[%.0f, %.0f] distance=[%.2f, %.2f]",
        config.profile.name,
        config.profile.detector,
        config.session.interval_s,
        config.lighting.min_brightness,
        config.lighting.max_brightness,
        config.distance.min_ratio,
        config.distance.max_ratio,
    )
    return config
