"""Pull the latest renderable frame out of a camera stream."""

from __future__ import annotations

import logging
from typing import Optional

import cv2

from woundcapture.camera.source import CameraStream
from woundcapture.types import DEFAULT_FRAME_SIZE, Frame, FrameSize

LOGGER = logging.getLogger("woundcapture.camera.sampler")


class FrameSampler:
    """Draws stream frames into a raster sized to the stream's native resolution."""

    def __init__(self, default_size: FrameSize = DEFAULT_FRAME_SIZE) -> None:
        self.default_size = default_size

    def target_size(self, stream: CameraStream) -> FrameSize:
        width, height = stream.native_size()
        if width <= 0 or height <= 0:
            # Zero-sized sources would break every ratio downstream.
            return self.default_size
        return width, height

    def sample(self, stream: CameraStream) -> Optional[Frame]:
        if not stream.has_enough_data():
            return None
        image = stream.read()
        if image is None or image.size == 0:
            LOGGER.debug("Stream produced no frame; skipping sample")
            return None
        width, height = self.target_size(stream)
        if image.shape[1] != width or image.shape[0] != height:
            image = cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)
        return Frame(pixels=image, channel_order=getattr(stream, "channel_order", "BGR"))
