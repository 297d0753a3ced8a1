"""Fixed weights and ranges used by the similarity engine."""
from typing import Dict, Literal, Tuple

SimilarityType = Literal["semantic", "audio", "combined"]
SIMILARITY_TYPES: Tuple[str, ...] = ("semantic", "audio", "combined")

# Facet order matters: co-occurrence pairs are built for facet i < facet j.
FACETS: Tuple[str, ...] = (
    "Emotional_Tone",
    "Thematic_Content",
    "Narrative_Structure",
    "Lyrical_Style",
)

FACET_WEIGHTS: Dict[str, float] = {
    "Emotional_Tone": 0.4,
    "Thematic_Content": 0.3,
    "Narrative_Structure": 0.1,
    "Lyrical_Style": 0.2,
}

FEATURE_WEIGHTS: Dict[str, float] = {
    "danceability": 0.15,
    "energy": 0.15,
    "acousticness": 0.1,
    "instrumentalness": 0.1,
    "valence": 0.15,
    "tempo": 0.1,
    "loudness": 0.05,
    "speechiness": 0.1,
    "liveness": 0.05,
    "mode": 0.05,
}

# Natural domains for features outside [0, 1]
FEATURE_RANGES: Dict[str, Tuple[float, float]] = {
    "tempo": (40.0, 200.0),
    "loudness": (-60.0, 0.0),
}

BINARY_FEATURES = frozenset({"mode"})

# Semantic blend: basic facet overlap vs. cross-facet co-occurrence
BASIC_FACET_BLEND = 0.4
CO_OCCURRENCE_BLEND = 0.6
MIN_FACETS_FOR_CO_OCCURRENCE = 2

# Split used when measuring diversity between candidates
DIVERSITY_SEMANTIC_WEIGHT = 0.5
DIVERSITY_AUDIO_WEIGHT = 0.5

TOP_CO_OCCURRENCE_PATTERNS = 5
