"""Candidate scoring and selection."""

from woundcapture.evaluation.candidates import CandidateEvaluator, EvaluatedCandidate

__all__ = ["CandidateEvaluator", "EvaluatedCandidate"]
