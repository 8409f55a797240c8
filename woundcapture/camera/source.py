"""Camera source contracts and the OpenCV-backed implementation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, Union

import cv2
import numpy as np

from woundcapture.errors import CameraError, CaptureError
from woundcapture.types import Frame

LOGGER = logging.getLogger("woundcapture.camera.source")


@dataclass(frozen=True)
class CameraConstraints:
    facing_mode: str = "environment"
    ideal_width: int = 1280
    ideal_height: int = 720


class CameraStream(Protocol):
    channel_order: str

    def has_enough_data(self) -> bool: ...

    def read(self) -> Optional[np.ndarray]: ...

    def native_size(self) -> Tuple[int, int]: ...

    def stop(self) -> None: ...


class CameraSource(Protocol):
    def acquire(self, constraints: CameraConstraints) -> CameraStream: ...

    def release(self, stream: CameraStream) -> None: ...


class OpenCVCameraStream:
    """Live ``cv2.VideoCapture`` handle; stopping releases the device.

    Reads and stops are serialized so the device can be released from the
    event loop while a worker thread is reading.
    """

    channel_order = "BGR"

    def __init__(self, capture: "cv2.VideoCapture", name: str) -> None:
        self.capture = capture
        self.name = name
        self._stopped = False
        self._lock = threading.Lock()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def has_enough_data(self) -> bool:
        return not self._stopped and bool(self.capture.isOpened())

    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._stopped:
                return None
            ok, frame = self.capture.read()
        if not ok or frame is None:
            return None
        return frame

    def native_size(self) -> Tuple[int, int]:
        width = int(self.capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        height = int(self.capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        return width, height

    def stop(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self.capture.release()
        LOGGER.debug("Camera stream %s stopped", self.name)


class OpenCVCameraSource:
    """Opens a camera device index (or a video path) through OpenCV.

    OpenCV has no notion of facing mode; the hint is only logged.
    """

    def __init__(self, device: Union[int, str] = 0) -> None:
        self.device = device

    def acquire(self, constraints: CameraConstraints) -> OpenCVCameraStream:
        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise CameraError(
                CameraError.UNAVAILABLE,
                f"Unable to open camera device {self.device!r}",
            )
        if isinstance(self.device, int):
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.ideal_width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.ideal_height)
        stream = OpenCVCameraStream(capture, name=str(self.device))
        width, height = stream.native_size()
        LOGGER.info(
            "Acquired camera device=%s facing=%s requested=%dx%d native=%dx%d",
            self.device,
            constraints.facing_mode,
            constraints.ideal_width,
            constraints.ideal_height,
            width,
            height,
        )
        return stream

    def release(self, stream: CameraStream) -> None:
        stream.stop()


def encode_jpeg(frame: Frame, quality: int = 80) -> bytes:
    """Freeze a frame into JPEG bytes."""
    pixels = np.ascontiguousarray(frame.pixels).copy()
    if frame.channel_order == "RGBA":
        pixels = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGR)
    elif frame.channel_order == "RGB":
        pixels = cv2.cvtColor(pixels, cv2.COLOR_RGB2BGR)
    elif frame.channel_order == "BGRA":
        pixels = cv2.cvtColor(pixels, cv2.COLOR_BGRA2BGR)
    ok, buffer = cv2.imencode(".jpg", pixels, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise CaptureError("JPEG encoding failed")
    return buffer.tobytes()
