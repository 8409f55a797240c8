"""Capture session state machine and its detection loop."""

from woundcapture.session.capture import (
    AnalysisService,
    CaptureSession,
    CaptureStep,
    SessionSnapshot,
    SubmitReceipt,
)
from woundcapture.session.loop import DetectionLoop

__all__ = [
    "AnalysisService",
    "CaptureSession",
    "CaptureStep",
    "DetectionLoop",
    "SessionSnapshot",
    "SubmitReceipt",
]
