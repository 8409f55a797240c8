from woundcapture.analysis.positioning import guide
from woundcapture.types import BoundingBox, PositionGuidance

WIDTH, HEIGHT = 640, 480


def box_centered_at(cx: float, cy: float, size: float = 100.0) -> BoundingBox:
    return BoundingBox(cx - size / 2, cy - size / 2, size, size)


def test_centered_box_needs_no_movement():
    guidance = guide(box_centered_at(320, 240), WIDTH, HEIGHT)

    assert guidance == PositionGuidance()
    assert guidance.centered


def test_offsets_inside_dead_zone_are_ignored():
    # Tolerance is 0.1 * 480 = 48 px on each axis.
    guidance = guide(box_centered_at(350, 260), WIDTH, HEIGHT)

    assert guidance.centered


def test_horizontal_offsets():
    assert guide(box_centered_at(400, 240), WIDTH, HEIGHT).directions() == ["left"]
    assert guide(box_centered_at(200, 240), WIDTH, HEIGHT).directions() == ["right"]


def test_vertical_offsets():
    assert guide(box_centered_at(320, 360), WIDTH, HEIGHT).directions() == ["up"]
    assert guide(box_centered_at(320, 100), WIDTH, HEIGHT).directions() == ["down"]


def test_axes_are_independent():
    guidance = guide(box_centered_at(100, 100), WIDTH, HEIGHT)

    assert guidance.right and guidance.down
    assert not guidance.left and not guidance.up


def test_zero_dead_zone_flags_any_offset():
    guidance = guide(box_centered_at(321, 240), WIDTH, HEIGHT, dead_zone=0.0)

    assert guidance.directions() == ["left"]


def test_degenerate_frame_returns_no_guidance():
    assert guide(box_centered_at(10, 10), 0, 0).centered
