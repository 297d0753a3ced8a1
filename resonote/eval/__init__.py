"""Evaluation utilities for playlist quality and similarity sanity checks."""
from .metrics import (
    CrossValidationFold,
    CrossValidationResult,
    PlaylistEvaluation,
    PlaylistEvaluator,
    tag_coverage,
)

__all__ = [
    "CrossValidationFold",
    "CrossValidationResult",
    "PlaylistEvaluation",
    "PlaylistEvaluator",
    "tag_coverage",
]
