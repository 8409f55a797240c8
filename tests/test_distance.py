from woundcapture.analysis.distance import classify_distance, height_ratio
from woundcapture.types import BoundingBox, Distance

ORDER = {Distance.TOO_FAR: 0, Distance.IDEAL: 1, Distance.TOO_CLOSE: 2}


def box_with_height(height: float) -> BoundingBox:
    return BoundingBox(100.0, 0.0, 80.0, height)


def test_height_ratio_bands():
    assert classify_distance(box_with_height(48), 480) == Distance.TOO_FAR
    assert classify_distance(box_with_height(240), 480) == Distance.IDEAL
    assert classify_distance(box_with_height(400), 480) == Distance.TOO_CLOSE


def test_bounds_are_ideal():
    assert classify_distance(box_with_height(96), 480) == Distance.IDEAL  # 0.2
    assert classify_distance(box_with_height(240), 480, max_ratio=0.5) == Distance.IDEAL


def test_width_does_not_matter():
    wide = BoundingBox(0.0, 0.0, 600.0, 48.0)
    narrow = BoundingBox(0.0, 0.0, 10.0, 48.0)

    assert classify_distance(wide, 480) == classify_distance(narrow, 480) == Distance.TOO_FAR


def test_distance_is_monotonic_in_box_height():
    labels = [classify_distance(box_with_height(h), 480) for h in range(0, 481, 8)]
    ranks = [ORDER[label] for label in labels]

    assert ranks == sorted(ranks)
    assert set(labels) == set(ORDER)


def test_degenerate_frame_height_is_unknown():
    assert classify_distance(box_with_height(10), 0) == Distance.UNKNOWN
    assert height_ratio(box_with_height(10), 0) == 0.0
