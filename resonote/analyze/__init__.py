"""Per-track analysis helpers."""

from .track_analysis import FacetDistribution, TagConfidence, TrackAnalysis, analyze_track

__all__ = [
    "FacetDistribution",
    "TagConfidence",
    "TrackAnalysis",
    "analyze_track",
]
