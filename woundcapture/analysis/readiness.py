"""Readiness gate: fuse presence, distance and lighting into one decision."""

from __future__ import annotations

from typing import List, Optional, Tuple

from woundcapture.config import MessageCatalog
from woundcapture.types import DetectionStatus, Distance, Lighting

TONE_SEARCHING = "searching"
TONE_ADJUST = "adjust"
TONE_READY = "ready"


def is_ready(status: DetectionStatus) -> bool:
    return bool(
        status.subject_present
        and status.distance == Distance.IDEAL
        and status.lighting == Lighting.IDEAL
    )


def status_message(status: DetectionStatus, messages: Optional[MessageCatalog] = None) -> str:
    """Prioritized status line; the first matching rule wins.

    1. no subject -> placement prompt
    2. subject but not ready -> presence, distance, lighting (in that order)
    3. ready -> single affirmative
    """
    messages = messages or MessageCatalog()
    if not status.subject_present:
        return messages.not_present
    if is_ready(status):
        return messages.ready

    parts: List[str] = [messages.present]
    if status.distance == Distance.TOO_FAR:
        parts.append(messages.too_far)
    elif status.distance == Distance.TOO_CLOSE:
        parts.append(messages.too_close)
    elif status.distance == Distance.IDEAL:
        parts.append(messages.distance_ok)
    if status.lighting == Lighting.TOO_DARK:
        parts.append(messages.too_dark)
    elif status.lighting == Lighting.TOO_BRIGHT:
        parts.append(messages.too_bright)
    return messages.separator.join(parts)


def status_tone(status: DetectionStatus) -> str:
    if not status.subject_present:
        return TONE_SEARCHING
    if is_ready(status):
        return TONE_READY
    return TONE_ADJUST


def detail_hints(status: DetectionStatus, messages: Optional[MessageCatalog] = None) -> Tuple[str, ...]:
    """Short per-signal chips, only shown once the subject is in frame."""
    messages = messages or MessageCatalog()
    if not status.subject_present:
        return ()
    hints: List[str] = []
    if status.distance == Distance.TOO_FAR:
        hints.append(messages.hint_too_far)
    elif status.distance == Distance.TOO_CLOSE:
        hints.append(messages.hint_too_close)
    if status.lighting == Lighting.TOO_DARK:
        hints.append(messages.hint_too_dark)
    elif status.lighting == Lighting.TOO_BRIGHT:
        hints.append(messages.hint_too_bright)
    return tuple(hints)
