"""Exceptions raised at the seams of the capture engine."""

from __future__ import annotations

from typing import Optional


class CaptureError(Exception):
    """Base error for the woundcapture package."""


class ConfigError(CaptureError):
    """Invalid or unreadable guidance configuration."""


class CameraError(CaptureError):
    """Camera could not be acquired.

    ``reason`` is ``"permission-denied"`` or ``"unavailable"``.
    """

    PERMISSION_DENIED = "permission-denied"
    UNAVAILABLE = "unavailable"

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        if reason not in (self.PERMISSION_DENIED, self.UNAVAILABLE):
            raise ValueError(f"Unknown camera error reason {reason!r}")
        self.reason = reason
        super().__init__(message or f"camera {reason}")


class DetectorLoadError(CaptureError):
    """The subject detection model failed to initialise."""


class SubmitError(CaptureError):
    """The analysis/storage service rejected a submission."""


class InvalidTransitionError(CaptureError):
    """A capture-session action was requested from the wrong step."""

    def __init__(self, action: str, step: str) -> None:
        self.action = action
        self.step = step
        super().__init__(f"Cannot {action} while in step {step!r}")
