"""Camera sources and the frame sampler."""

from woundcapture.camera.sampler import FrameSampler
from woundcapture.camera.source import (
    CameraConstraints,
    OpenCVCameraSource,
    OpenCVCameraStream,
    encode_jpeg,
)

__all__ = [
    "CameraConstraints",
    "FrameSampler",
    "OpenCVCameraSource",
    "OpenCVCameraStream",
    "encode_jpeg",
]
