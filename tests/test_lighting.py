import numpy as np

from woundcapture.analysis.lighting import average_brightness, classify_lighting
from woundcapture.types import Frame, Lighting


def uniform_frame(value: int, width: int = 64, height: int = 48, channels: str = "BGR") -> Frame:
    pixels = np.full((height, width, len(channels)), value, dtype=np.uint8)
    return Frame(pixels=pixels, channel_order=channels)


def test_classify_lighting_bands():
    assert classify_lighting(uniform_frame(20)) == Lighting.TOO_DARK
    assert classify_lighting(uniform_frame(128)) == Lighting.IDEAL
    assert classify_lighting(uniform_frame(230)) == Lighting.TOO_BRIGHT


def test_thresholds_are_exclusive():
    black = uniform_frame(0)

    assert average_brightness(black) == 0.0
    # A mean sitting exactly on a bound is still ideal.
    assert classify_lighting(black, min_brightness=0.0, max_brightness=10.0) == Lighting.IDEAL
    assert classify_lighting(black, min_brightness=-10.0, max_brightness=0.0) == Lighting.IDEAL
    assert classify_lighting(black, min_brightness=0.5, max_brightness=10.0) == Lighting.TOO_DARK


def test_luma_weights_green_brighter_than_blue():
    pixels = np.zeros((10, 10, 3), dtype=np.uint8)
    green = pixels.copy()
    green[:, :, 1] = 255
    blue = pixels.copy()
    blue[:, :, 0] = 255  # BGR

    assert average_brightness(Frame(pixels=green)) > average_brightness(Frame(pixels=blue))


def test_sample_stride_only_reads_every_nth_pixel():
    pixels = np.zeros((1, 20, 3), dtype=np.uint8)
    pixels[0, 0] = 255
    pixels[0, 10] = 255
    frame = Frame(pixels=pixels)

    assert classify_lighting(frame, stride=10) == Lighting.TOO_BRIGHT
    assert classify_lighting(frame, stride=1) == Lighting.TOO_DARK


def test_rgba_frames_ignore_alpha():
    pixels = np.full((16, 16, 4), 128, dtype=np.uint8)
    pixels[:, :, 3] = 0
    frame = Frame(pixels=pixels, channel_order="RGBA")

    assert classify_lighting(frame) == Lighting.IDEAL


def test_classification_is_pure():
    source = np.random.default_rng(7).integers(0, 256, size=(48, 64, 3), dtype=np.uint8)
    original = source.copy()
    frame = Frame(pixels=source)

    first = classify_lighting(frame)
    second = classify_lighting(frame)

    assert first == second
    assert np.array_equal(source, original)
    assert np.array_equal(frame.pixels, original)
