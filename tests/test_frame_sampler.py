import numpy as np
import pytest

pytest.importorskip("cv2")

from woundcapture.camera.sampler import FrameSampler
from woundcapture.camera.source import encode_jpeg
from woundcapture.types import Frame


class DummyStream:
    channel_order = "BGR"

    def __init__(self, image=None, native=(320, 240), ready=True):
        self.image = image
        self.native = native
        self.ready = ready

    def has_enough_data(self):
        return self.ready

    def read(self):
        return self.image

    def native_size(self):
        return self.native

    def stop(self):  # pragma: no cover - stub
        pass


def test_zero_sized_stream_falls_back_to_default_raster():
    stream = DummyStream(np.zeros((240, 320, 3), dtype=np.uint8), native=(0, 0))

    frame = FrameSampler().sample(stream)

    assert frame.size == (640, 480)


def test_frame_matches_native_resolution():
    stream = DummyStream(np.zeros((240, 320, 3), dtype=np.uint8), native=(320, 240))

    frame = FrameSampler().sample(stream)

    assert frame.size == (320, 240)
    assert frame.channel_order == "BGR"


def test_stream_without_data_skips_cycle():
    stream = DummyStream(np.zeros((240, 320, 3), dtype=np.uint8), ready=False)

    assert FrameSampler().sample(stream) is None


def test_empty_read_skips_cycle():
    assert FrameSampler().sample(DummyStream(None)) is None


def test_sampled_frames_are_snapshots():
    image = np.zeros((240, 320, 3), dtype=np.uint8)
    stream = DummyStream(image)

    frame = FrameSampler().sample(stream)
    image[:] = 255

    assert frame.pixels.max() == 0
    assert not frame.pixels.flags.writeable


def test_encode_jpeg_produces_jpeg_bytes():
    frame = Frame(pixels=np.full((48, 64, 4), 128, dtype=np.uint8), channel_order="RGBA")

    payload = encode_jpeg(frame, quality=80)

    assert payload[:2] == b"\xff\xd8"
