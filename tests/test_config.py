from pathlib import Path

import pytest

from woundcapture.config import PROFILES, GuidanceConfig, load_config
from woundcapture.errors import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[1]


def write_yaml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "guidance.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_use_foot_profile():
    config = GuidanceConfig()

    assert config.profile.name == "foot"
    assert config.profile.detector == "pose"
    assert config.weights == "yolov8n-pose.pt"
    assert config.lighting.min_brightness == 50.0
    assert config.distance.max_ratio == 0.7
    assert config.session.interval_s == 0.5


def test_shipped_config_matches_defaults():
    config = load_config(REPO_ROOT / "configs" / "guidance.yaml")

    assert config.to_dict() == GuidanceConfig().to_dict()


def test_missing_path_yields_defaults():
    assert load_config(None).to_dict() == GuidanceConfig().to_dict()


def test_yaml_overrides_are_applied(tmp_path):
    path = write_yaml(
        tmp_path,
        "lighting:\n  min_brightness: 40\nfallback:\n  aspect_range: [0.5, 2.0]\nsession:\n  interval_s: 0.25\n",
    )

    config = load_config(path)

    assert config.lighting.min_brightness == 40
    assert config.lighting.max_brightness == 200.0
    assert config.fallback.aspect_range == (0.5, 2.0)
    assert config.session.interval_s == 0.25


def test_profile_argument_overrides_file(tmp_path):
    path = write_yaml(tmp_path, "profile: foot\n")

    config = load_config(path, profile="handheld")

    assert config.profile.name == "handheld"
    assert config.profile.detector == "object"
    assert config.profile.class_filter == PROFILES["handheld"].class_filter


def test_profile_mapping_extends_preset():
    config = GuidanceConfig.from_dict({"profile": {"name": "foot", "ideal_area_range": [0.05, 0.3]}})

    assert config.profile.detector == "pose"
    assert config.profile.ideal_area_range == (0.05, 0.3)
    assert config.profile.messages.not_present == "Place your foot in the frame"


def test_presets_are_not_mutated_by_overrides():
    GuidanceConfig.from_dict({"profile": {"name": "foot", "weights": "custom.pt"}})

    assert PROFILES["foot"].weights == "yolov8n-pose.pt"


def test_detection_weights_override_profile():
    config = GuidanceConfig.from_dict({"detection": {"weights": "best.pt"}})

    assert config.weights == "best.pt"


@pytest.mark.parametrize(
    "data",
    [
        {"lightning": {}},
        {"lighting": {"brightness": 10}},
        {"profile": {"name": "foot", "keypoints": {"elbow": 1}}},
    ],
)
def test_unknown_keys_are_rejected(data):
    with pytest.raises(ConfigError):
        GuidanceConfig.from_dict(data)


@pytest.mark.parametrize(
    "data",
    [
        {"lighting": {"min_brightness": 220}},
        {"distance": {"min_ratio": 0.8}},
        {"positioning": {"dead_zone": 0.6}},
        {"session": {"interval_s": 0}},
        {"session": {"jpeg_quality": 0}},
        {"profile": {"detector": "segmentation"}},
        {"profile": "elbow"},
    ],
)
def test_invalid_values_are_rejected(data):
    with pytest.raises(ConfigError):
        GuidanceConfig.from_dict(data)


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")
