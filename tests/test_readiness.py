import itertools

from woundcapture.analysis.readiness import (
    TONE_ADJUST,
    TONE_READY,
    TONE_SEARCHING,
    detail_hints,
    is_ready,
    status_message,
    status_tone,
)
from woundcapture.config import PROFILES, MessageCatalog
from woundcapture.types import BoundingBox, DetectionStatus, Distance, Lighting

BOX = BoundingBox(220.0, 120.0, 200.0, 240.0)


def make_status(present=True, distance=Distance.IDEAL, lighting=Lighting.IDEAL) -> DetectionStatus:
    return DetectionStatus(present, distance, lighting, BOX if present else None)


def test_ready_requires_all_three_signals():
    combos = itertools.product([True, False], list(Distance), list(Lighting))
    for present, distance, lighting in combos:
        status = make_status(present, distance, lighting)
        expected = present and distance == Distance.IDEAL and lighting == Lighting.IDEAL
        assert is_ready(status) is expected


def test_missing_subject_prompts_placement():
    status = make_status(present=False, lighting=Lighting.TOO_DARK)

    assert status_message(status) == MessageCatalog().not_present
    assert status_tone(status) == TONE_SEARCHING
    assert detail_hints(status) == ()


def test_not_ready_message_lists_distance_then_lighting():
    status = make_status(distance=Distance.TOO_FAR, lighting=Lighting.TOO_DARK)

    assert status_message(status) == "Subject detected • Move closer • Find brighter lighting"
    assert status_tone(status) == TONE_ADJUST
    assert detail_hints(status) == ("Too far", "Too dark")


def test_good_distance_is_confirmed_when_lighting_is_off():
    status = make_status(lighting=Lighting.TOO_BRIGHT)

    assert status_message(status) == "Subject detected • Distance looks good • Reduce lighting"
    assert detail_hints(status) == ("Too bright",)


def test_too_close_only():
    status = make_status(distance=Distance.TOO_CLOSE)

    assert status_message(status) == "Subject detected • Move farther"
    assert detail_hints(status) == ("Too close",)


def test_ready_message_is_single_affirmative():
    status = make_status()

    assert status_message(status) == "Good position - Ready!"
    assert status_tone(status) == TONE_READY
    assert detail_hints(status) == ()


def test_profile_wording_is_used():
    messages = PROFILES["foot"].messages

    assert status_message(make_status(present=False), messages) == "Place your foot in the frame"
    assert status_message(make_status(distance=Distance.TOO_FAR), messages) == "Foot detected • Move closer"
