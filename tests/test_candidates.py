from woundcapture.config import PROFILES
from woundcapture.evaluation.candidates import CandidateEvaluator
from woundcapture.types import BoundingBox, DetectionCandidate

WIDTH, HEIGHT = 640, 480


def make_candidate(width, height, label="foot", confidence=0.5, x=100.0, y=100.0) -> DetectionCandidate:
    return DetectionCandidate(bbox=BoundingBox(x, y, width, height), label=label, confidence=confidence)


def build_evaluator() -> CandidateEvaluator:
    return CandidateEvaluator(PROFILES["foot"])


def test_all_boosts_multiply():
    evaluator = build_evaluator()
    # aspect 0.667 and area 0.049 both sit in the ideal bands
    candidate = make_candidate(100, 150)

    assert evaluator.score(candidate, WIDTH, HEIGHT) == 0.5 * 1.5 * 1.3 * 2.0


def test_hard_filters_reject_bad_shapes():
    evaluator = build_evaluator()
    too_wide = make_candidate(400, 100)  # aspect 4.0
    too_small = make_candidate(10, 10)  # area 0.0003
    flat = make_candidate(100, 0)

    for candidate in (too_wide, too_small, flat):
        assert not evaluator.passes_filters(candidate, WIDTH, HEIGHT)
    assert evaluator.evaluate([too_wide, too_small, flat], WIDTH, HEIGHT) is None


def test_confident_target_label_still_needs_plausible_shape():
    evaluator = build_evaluator()
    too_wide = make_candidate(400, 100, confidence=1.0)
    too_small = make_candidate(10, 10, confidence=1.0)

    assert not evaluator.passes_filters(too_wide, WIDTH, HEIGHT)
    assert not evaluator.passes_filters(too_small, WIDTH, HEIGHT)
    assert evaluator.evaluate([too_wide, too_small], WIDTH, HEIGHT) is None


def test_filter_bounds_are_inclusive():
    evaluator = build_evaluator()
    # aspect exactly 3.0
    candidate = make_candidate(150, 50)

    assert evaluator.passes_filters(candidate, WIDTH, HEIGHT)


def test_target_label_outweighs_raw_confidence():
    evaluator = build_evaluator()
    other = make_candidate(100, 150, label="person", confidence=0.7)
    target = make_candidate(100, 150, label="foot", confidence=0.4)

    best = evaluator.evaluate([other, target], WIDTH, HEIGHT)

    assert best is not None
    assert best.candidate is target


def test_ties_keep_first_candidate():
    evaluator = build_evaluator()
    first = make_candidate(100, 150, label="a", x=10.0)
    second = make_candidate(100, 150, label="b", x=300.0)

    best = evaluator.evaluate([first, second], WIDTH, HEIGHT)

    assert best.candidate is first


def test_empty_candidates_yield_nothing():
    assert build_evaluator().evaluate([], WIDTH, HEIGHT) is None
