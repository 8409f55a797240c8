"""Capture session state machine: camera -> preview -> confirm -> success."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Protocol, Union

from woundcapture.camera.sampler import FrameSampler
from woundcapture.camera.source import CameraConstraints, CameraSource, CameraStream, encode_jpeg
from woundcapture.config import GuidanceConfig
from woundcapture.detectors.fallback import Detector
from woundcapture.errors import CameraError, CaptureError, InvalidTransitionError
from woundcapture.pipeline import GuidancePipeline, idle_result
from woundcapture.session.loop import DetectionLoop
from woundcapture.types import DetectionStatus, GuidanceResult

LOGGER = logging.getLogger("woundcapture.session")

CAMERA_ERROR_MESSAGE = "Unable to access camera. Please ensure camera permissions are granted."
MODEL_ERROR_MESSAGE = "Failed to load AI model. Some features may not work."
UPLOAD_ERROR_MESSAGE = "Failed to upload image"


class CaptureStep(str, Enum):
    CAMERA = "camera"
    PREVIEW = "preview"
    CONFIRM = "confirm"
    SUCCESS = "success"


@dataclass(frozen=True)
class SubmitReceipt:
    artifact_id: str


class AnalysisService(Protocol):
    def submit(self, image: bytes, notes: str) -> Union[SubmitReceipt, Awaitable[SubmitReceipt]]: ...


class DetectorLoaderLike(Protocol):
    def load(self) -> Union[Detector, Awaitable[Detector]]: ...


@dataclass(frozen=True)
class SessionSnapshot:
    """Read model handed to host UIs."""

    step: CaptureStep
    result: GuidanceResult
    can_capture: bool
    model_loading: bool
    guidance_available: bool
    camera_error: Optional[str]
    has_image: bool
    notes: str
    uploading: bool
    last_error: Optional[str]
    uploaded_artifact_id: Optional[str]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _artifact_id(receipt: Any) -> str:
    if isinstance(receipt, SubmitReceipt):
        return receipt.artifact_id
    if isinstance(receipt, Mapping):
        return str(receipt["artifact_id"])
    return str(getattr(receipt, "artifact_id", receipt))


class _StreamReadFailure(Exception):
    """Carries a camera read error from the worker back to the event loop."""

    def __init__(self, error: Exception) -> None:
        super().__init__(str(error))
        self.error = error


class CaptureSession:
    """Owns the camera scope, the detection loop and the capture/submit flow.

    All state lives on one asyncio event loop. Frame reads and inference run
    one at a time on a single worker thread, and their results are applied
    only when they are the newest for the current camera step. A tick that
    fires while the previous cycle is still running is skipped.
    """

    def __init__(
        self,
        camera: CameraSource,
        loader: DetectorLoaderLike,
        service: AnalysisService,
        config: Optional[GuidanceConfig] = None,
        sampler: Optional[FrameSampler] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.config = config or GuidanceConfig()
        self.camera = camera
        self.loader = loader
        self.service = service
        self.sampler = sampler or FrameSampler()
        self.constraints = CameraConstraints(
            facing_mode=self.config.session.facing_mode,
            ideal_width=self.config.session.ideal_width,
            ideal_height=self.config.session.ideal_height,
        )
        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="woundcapture-inference"
        )

        self.step = CaptureStep.CAMERA
        self.stream: Optional[CameraStream] = None
        self.captured_image: Optional[bytes] = None
        self.notes = ""
        self.uploaded_artifact_id: Optional[str] = None
        self.last_error: Optional[str] = None
        self.camera_error: Optional[str] = None
        self.camera_error_reason: Optional[str] = None
        self.model_loading = True
        self.guidance_available = False
        self.uploading = False
        self.result: GuidanceResult = idle_result(self.config)

        self._pipeline: Optional[GuidancePipeline] = None
        self._model_task: Optional[asyncio.Task] = None
        self._camera_scope: Optional[ExitStack] = None
        self._detection_loop: Optional[DetectionLoop] = None
        self._sequence = itertools.count(1)
        self._applied_sequence = 0
        self._cycle_pending = False
        self.cycles_skipped = 0
        self._camera_epoch = 0
        self._closed = False
        self._listeners: List[Callable[["CaptureSession"], None]] = []

    # -- read side -------------------------------------------------------

    @property
    def status(self) -> DetectionStatus:
        return self.result.status

    @property
    def ready(self) -> bool:
        return self.result.ready

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detection_running(self) -> bool:
        return self._detection_loop is not None and self._detection_loop.running

    @property
    def can_capture(self) -> bool:
        return (
            self.step is CaptureStep.CAMERA
            and self.ready
            and not self.model_loading
            and self.guidance_available
            and self.camera_error is None
            and self.stream is not None
        )

    @property
    def can_upload(self) -> bool:
        return self.step is CaptureStep.CONFIRM and not self.uploading and self.captured_image is not None

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            step=self.step,
            result=self.result,
            can_capture=self.can_capture,
            model_loading=self.model_loading,
            guidance_available=self.guidance_available,
            camera_error=self.camera_error,
            has_image=self.captured_image is not None,
            notes=self.notes,
            uploading=self.uploading,
            last_error=self.last_error,
            uploaded_artifact_id=self.uploaded_artifact_id,
        )

    def add_listener(self, callback: Callable[["CaptureSession"], None]) -> None:
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                LOGGER.exception("Session listener %r failed", callback)

    def _require(self, step: CaptureStep, action: str) -> None:
        if self._closed:
            raise InvalidTransitionError(action, "closed")
        if self.step is not step:
            raise InvalidTransitionError(action, self.step.value)

    # -- lifecycle -------------------------------------------------------

    async def start(self) -> "CaptureSession":
        """Begin model loading in the background and enter the camera step."""
        if self._closed:
            raise InvalidTransitionError("start", "closed")
        if self._model_task is None:
            self._model_task = asyncio.ensure_future(self._load_model())
        await self._enter_camera()
        return self

    async def wait_until_loaded(self) -> None:
        if self._model_task is not None:
            await asyncio.shield(self._model_task)

    async def close(self) -> None:
        """Tear down from any step: camera released, timer cleared."""
        if self._closed:
            return
        self._closed = True
        self._leave_camera()
        if self._model_task is not None and not self._model_task.done():
            self._model_task.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        LOGGER.info("Capture session closed in step=%s", self.step.value)

    async def __aenter__(self) -> "CaptureSession":
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _load_model(self) -> None:
        self.model_loading = True
        try:
            if inspect.iscoroutinefunction(self.loader.load):
                detector = await self.loader.load()
            else:
                loop = asyncio.get_running_loop()
                detector = await loop.run_in_executor(self._executor, self.loader.load)
        except asyncio.CancelledError:
            self.model_loading = False
            raise
        except Exception as exc:
            LOGGER.warning("Detector load failed (%s); automatic guidance disabled.", exc)
            LOGGER.debug("Detector load stack trace", exc_info=True)
            self.model_loading = False
            self.guidance_available = False
            self.last_error = MODEL_ERROR_MESSAGE
            self._notify()
            return
        self.model_loading = False
        if self._closed:
            return
        self._pipeline = GuidancePipeline(detector, self.config)
        self.guidance_available = True
        LOGGER.info("Detector ready; guidance enabled")
        self._maybe_start_detection()
        self._notify()

    # -- camera scope ----------------------------------------------------

    async def _enter_camera(self) -> None:
        self.step = CaptureStep.CAMERA
        self.camera_error = None
        self.camera_error_reason = None
        self.result = idle_result(self.config)
        self._camera_epoch += 1
        epoch = self._camera_epoch
        try:
            stream = await _resolve(self.camera.acquire(self.constraints))
        except CameraError as exc:
            self._set_camera_error(exc.reason, exc)
            return
        except Exception as exc:
            self._set_camera_error(CameraError.UNAVAILABLE, exc)
            return

        if self._closed or self.step is not CaptureStep.CAMERA or epoch != self._camera_epoch:
            # Torn down while acquisition was pending.
            self._release_stream(stream)
            return

        scope = ExitStack()
        self.stream = stream
        scope.callback(self._release_stream, stream)
        self._camera_scope = scope
        LOGGER.info("Entered camera step")
        self._maybe_start_detection()
        self._notify()

    def _set_camera_error(self, reason: str, exc: Exception) -> None:
        LOGGER.warning("Camera unavailable (%s): %s", reason, exc)
        self.camera_error = CAMERA_ERROR_MESSAGE
        self.camera_error_reason = reason
        self._notify()

    def _release_stream(self, stream: CameraStream) -> None:
        if self.stream is stream:
            self.stream = None
        try:
            self.camera.release(stream)
        except Exception as exc:
            LOGGER.warning("Camera release failed: %s", exc)

    def _maybe_start_detection(self) -> None:
        if (
            self._closed
            or self.step is not CaptureStep.CAMERA
            or self.stream is None
            or self._pipeline is None
            or self._camera_scope is None
            or self._detection_loop is not None
        ):
            return
        detection_loop = DetectionLoop(self.run_detection_cycle, self.config.session.interval_s)
        detection_loop.start()
        self._detection_loop = detection_loop
        self._camera_scope.callback(self._stop_detection)

    def _stop_detection(self) -> None:
        if self._detection_loop is not None:
            self._detection_loop.stop()
            self._detection_loop = None

    def _leave_camera(self) -> None:
        scope, self._camera_scope = self._camera_scope, None
        if scope is not None:
            scope.close()
        self._stop_detection()
        self._camera_epoch += 1

    async def retry_camera(self) -> None:
        self._require(CaptureStep.CAMERA, "retry camera")
        if self.stream is not None:
            return
        await self._enter_camera()

    def fail_camera(self, exc: Exception) -> None:
        """Drop a stream that died mid-step; the user may retry."""
        if self.step is not CaptureStep.CAMERA or self._closed:
            return
        self._leave_camera()
        reason = exc.reason if isinstance(exc, CameraError) else CameraError.UNAVAILABLE
        self.result = idle_result(self.config)
        self._set_camera_error(reason, exc)

    # -- detection -------------------------------------------------------

    async def run_detection_cycle(self) -> Optional[GuidanceResult]:
        """Sample, analyze and apply one cycle; returns the applied result."""
        if (
            self._closed
            or self.step is not CaptureStep.CAMERA
            or self.stream is None
            or self._pipeline is None
        ):
            return None
        if self._cycle_pending:
            self.cycles_skipped += 1
            LOGGER.debug("Previous detection cycle still running; skipping tick")
            return None

        sequence = next(self._sequence)
        epoch = self._camera_epoch
        loop = asyncio.get_running_loop()
        self._cycle_pending = True
        try:
            result = await loop.run_in_executor(
                self._executor, self._sample_and_analyze, self.stream, self._pipeline, sequence
            )
        except _StreamReadFailure as exc:
            if epoch == self._camera_epoch:
                self.fail_camera(exc.error)
            return None
        except Exception as exc:
            LOGGER.debug("Detection cycle %d failed: %s", sequence, exc)
            return None
        finally:
            self._cycle_pending = False
        if result is None or not self._apply_result(result, epoch):
            return None
        return result

    def _sample_and_analyze(
        self, stream: CameraStream, pipeline: GuidancePipeline, sequence: int
    ) -> Optional[GuidanceResult]:
        """Worker-thread half of a cycle; touches no session state."""
        try:
            frame = self.sampler.sample(stream)
        except Exception as exc:
            raise _StreamReadFailure(exc) from exc
        if frame is None:
            return None
        return pipeline.analyze(frame, sequence)

    def _apply_result(self, result: GuidanceResult, epoch: int) -> bool:
        if (
            self._closed
            or self.step is not CaptureStep.CAMERA
            or epoch != self._camera_epoch
            or result.sequence <= self._applied_sequence
        ):
            LOGGER.debug("Discarding stale detection result seq=%d", result.sequence)
            return False
        self._applied_sequence = result.sequence
        self.result = result
        self._notify()
        return True

    # -- user actions ----------------------------------------------------

    def capture(self) -> bytes:
        """Freeze the current frame and move to preview."""
        self._require(CaptureStep.CAMERA, "capture")
        if not self.can_capture:
            raise CaptureError("Capture is disabled until the subject is positioned")
        frame = self.sampler.sample(self.stream)  # type: ignore[arg-type]
        if frame is None:
            raise CaptureError("Camera has no frame to capture")
        image = encode_jpeg(frame, self.config.session.jpeg_quality)
        self.captured_image = image
        self._leave_camera()
        self.step = CaptureStep.PREVIEW
        LOGGER.info("Captured %dx%d frame (%d bytes)", frame.width, frame.height, len(image))
        self._notify()
        return image

    def set_notes(self, notes: str) -> None:
        self._require(CaptureStep.PREVIEW, "edit notes")
        self.notes = notes
        self._notify()

    async def retake(self) -> None:
        self._require(CaptureStep.PREVIEW, "retake")
        self.captured_image = None
        self.notes = ""
        await self._enter_camera()

    def analyze(self) -> None:
        self._require(CaptureStep.PREVIEW, "analyze")
        self.step = CaptureStep.CONFIRM
        self.last_error = None
        self._notify()

    def go_back(self) -> None:
        self._require(CaptureStep.CONFIRM, "go back")
        if self.uploading:
            raise CaptureError("Upload in progress")
        self.step = CaptureStep.PREVIEW
        self._notify()

    async def upload(self) -> Optional[str]:
        """Submit image and notes; returns the artifact id on success."""
        self._require(CaptureStep.CONFIRM, "upload")
        if self.uploading:
            raise CaptureError("Upload already in progress")
        if self.captured_image is None:
            raise CaptureError("No captured image to upload")

        self.uploading = True
        self.last_error = None
        self._notify()
        try:
            receipt = await _resolve(self.service.submit(self.captured_image, self.notes))
        except Exception as exc:
            self.uploading = False
            if self._closed:
                LOGGER.info("Upload failed after session close: %s", exc)
                return None
            self.last_error = str(exc) or UPLOAD_ERROR_MESSAGE
            LOGGER.warning("Upload failed; staying in confirm: %s", self.last_error)
            self._notify()
            return None
        self.uploading = False
        if self._closed:
            LOGGER.info("Session closed before upload completed; ignoring result")
            return None
        self.uploaded_artifact_id = _artifact_id(receipt)
        self.step = CaptureStep.SUCCESS
        LOGGER.info("Upload complete artifact_id=%s", self.uploaded_artifact_id)
        self._notify()
        return self.uploaded_artifact_id

    async def restart(self) -> None:
        """Start a fresh capture from the success screen."""
        self._require(CaptureStep.SUCCESS, "restart")
        self.captured_image = None
        self.notes = ""
        self.uploaded_artifact_id = None
        if self.guidance_available:
            self.last_error = None
        await self._enter_camera()
