"""Candidate exclusion rules."""

from .rules import CandidateFilter, FilterDecision, FilterMetrics

__all__ = ["CandidateFilter", "FilterDecision", "FilterMetrics"]
