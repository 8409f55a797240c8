import numpy as np
import pytest

pytest.importorskip("cv2")

from woundcapture.analysis.readiness import TONE_ADJUST
from woundcapture.types import (
    BoundingBox,
    DetectionStatus,
    Distance,
    GuidanceResult,
    Lighting,
    PositionGuidance,
)
from woundcapture.viz.overlay import draw_guidance, overlay_text


def make_result() -> GuidanceResult:
    status = DetectionStatus(True, Distance.TOO_FAR, Lighting.IDEAL, BoundingBox(40.0, 40.0, 60.0, 80.0))
    return GuidanceResult(
        status=status,
        guidance=PositionGuidance(right=True, down=True),
        ready=False,
        message="Subject detected • Move closer",
        tone=TONE_ADJUST,
        hints=("Too far",),
        frame_size=(320, 240),
    )


def test_overlay_draws_on_a_copy():
    image = np.full((240, 320, 3), 128, dtype=np.uint8)

    canvas = draw_guidance(image, make_result())

    assert canvas.shape == image.shape
    assert (image == 128).all()
    assert not np.array_equal(canvas, image)


def test_overlay_rescales_boxes_to_preview_size():
    image = np.zeros((480, 640, 3), dtype=np.uint8)

    canvas = draw_guidance(image, make_result(), dim=0.0)

    # Box corner (40, 40) in a 320x240 frame lands at (80, 80).
    assert canvas[80, 80].any()


def test_camera_error_replaces_message():
    image = np.zeros((240, 320, 3), dtype=np.uint8)

    canvas = draw_guidance(image, make_result(), camera_error="Unable to access camera.")

    assert canvas.shape == image.shape


def test_overlay_text_is_ascii_for_hershey_fonts():
    assert overlay_text("Subject detected • Move closer") == "Subject detected | Move closer"
    assert overlay_text("Good position - Ready!") == "Good position - Ready!"
    assert overlay_text("Fuß") == "Fu?"


def test_overlay_draws_separator_as_ascii(monkeypatch):
    import cv2

    drawn = []
    original = cv2.putText

    def record(canvas, text, *args, **kwargs):
        drawn.append(text)
        return original(canvas, text, *args, **kwargs)

    monkeypatch.setattr(cv2, "putText", record)
    draw_guidance(np.zeros((240, 320, 3), dtype=np.uint8), make_result())

    assert "Subject detected | Move closer" in drawn
    assert all(text.isascii() for text in drawn)
