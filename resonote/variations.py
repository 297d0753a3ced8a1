"""
Variation Resolver
==================
Detects alternate renditions of the same song (remix, live, acoustic, cover,
edit, ...) so a playlist is not dominated by several versions of one track.

Features:
- base_track_name(): strips bracketed and dash-suffix version qualifiers
- Pluggable string matchers returning a normalized distance (0 = identical)
- Strict policy: drop variations of seeds, then keep one track per variation group
- Lenient policy: keep everything, flag exact base-name matches of seeds
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from difflib import SequenceMatcher
from typing import TYPE_CHECKING, List, Mapping, Optional, Protocol, Sequence

from .string_utils import normalize_text, word_tokens

if TYPE_CHECKING:
    from .playlist.models import Candidate
    from .track_store import Track

logger = logging.getLogger(__name__)

# Qualifiers that mark a rendition rather than part of the core title
VARIATION_KEYWORDS = (
    'remix', 'remixed', 'rmx', 'version', 'edit', 'mix', 'feat', 'ft', 'featuring',
    'cover', 'live', 'acoustic', 'instrumental', 'original', 'remaster', 'remastered',
    'demo',
)

_KEYWORD_ALTERNATION = '|'.join(re.escape(kw) for kw in VARIATION_KEYWORDS)

# Any (...), [...] or {...} group
_BRACKET_GROUP_PATTERN = re.compile(r'\s*[\(\[\{]([^\)\]\}]*)[\)\]\}]')

_KEYWORD_PATTERN = re.compile(r'\b(?:' + _KEYWORD_ALTERNATION + r')\b', re.IGNORECASE)

# " - Live at ...", " - Radio Edit", "-Remix"
_DASH_SUFFIX_PATTERN = re.compile(
    r'\s*-\s*(?:[\w\'\.]+\s+)?(?:' + _KEYWORD_ALTERNATION + r')\b.*$',
    re.IGNORECASE,
)


def base_track_name(title: Optional[str]) -> str:
    """
    Strip version qualifiers from a track title.

    Bracket groups are removed only when they contain a qualifier keyword, so
    "Song (Part 1)" is kept intact while "Song (Live at Wembley)" becomes "Song".
    Case is preserved. Best-effort heuristic, not a canonical form.
    """
    if not title:
        return ""

    def strip_if_variation(match: re.Match) -> str:
        if _KEYWORD_PATTERN.search(match.group(1)):
            return ''
        return match.group(0)

    base = _BRACKET_GROUP_PATTERN.sub(strip_if_variation, title)
    base = _DASH_SUFFIX_PATTERN.sub('', base)
    return " ".join(base.split())


class StringMatcher(Protocol):
    """Normalized string distance in [0, 1]; 0 means identical."""

    def distance(self, a: str, b: str) -> float:
        ...


class SequenceMatcherDistance:
    """1 - difflib ratio on normalized text. Suited to short strings such as titles."""

    def distance(self, a: str, b: str) -> float:
        a_norm = normalize_text(a)
        b_norm = normalize_text(b)
        if a_norm == b_norm:
            return 0.0
        return 1.0 - SequenceMatcher(None, a_norm, b_norm).ratio()


class TokenSetDistance:
    """1 - Jaccard overlap of word sets. Suited to long text such as lyrics."""

    def distance(self, a: str, b: str) -> float:
        tokens_a = set(word_tokens(a))
        tokens_b = set(word_tokens(b))
        union = tokens_a | tokens_b
        if not union:
            return 0.0
        return 1.0 - len(tokens_a & tokens_b) / len(union)


@dataclass(frozen=True)
class VariationConfig:
    """Distance thresholds; a pair is a variation when distance < threshold."""
    title_threshold: float = 0.3
    lyrics_seed_threshold: float = 0.6
    lyrics_group_threshold: float = 0.7


class VariationResolver:
    """
    Applies the variation policy to merged playlist candidates.

    Usage:
        resolver = VariationResolver()
        kept = resolver.resolve(candidates, candidate_tracks, seed_tracks, allow_variations=False)
    """

    def __init__(
        self,
        config: Optional[VariationConfig] = None,
        title_matcher: Optional[StringMatcher] = None,
        lyrics_matcher: Optional[StringMatcher] = None,
    ):
        self.config = config or VariationConfig()
        self.title_matcher = title_matcher or SequenceMatcherDistance()
        self.lyrics_matcher = lyrics_matcher or TokenSetDistance()

    def titles_match(self, track1: Track, track2: Track) -> bool:
        base1 = base_track_name(track1.name)
        base2 = base_track_name(track2.name)
        if not base1 or not base2:
            return False
        return self.title_matcher.distance(base1, base2) < self.config.title_threshold

    def lyrics_match(self, track1: Track, track2: Track, threshold: float) -> bool:
        if not track1.lyrics or not track2.lyrics:
            return False
        return self.lyrics_matcher.distance(track1.lyrics, track2.lyrics) < threshold

    def is_variation_of(self, candidate: Track, seed: Track) -> bool:
        """Fuzzy title match or (when both have lyrics) lyrics match against a seed."""
        if candidate.track_id == seed.track_id:
            return False
        return (
            self.titles_match(candidate, seed)
            or self.lyrics_match(candidate, seed, self.config.lyrics_seed_threshold)
        )

    def same_group(self, track: Track, representative: Track) -> bool:
        return (
            self.titles_match(track, representative)
            or self.lyrics_match(track, representative, self.config.lyrics_group_threshold)
        )

    def filter_seed_variations(
        self,
        candidates: Sequence[Candidate],
        tracks: Mapping[str, Track],
        seeds: Sequence[Track],
    ) -> List[Candidate]:
        """Drop every candidate that is a variation of any seed."""
        kept = []
        for candidate in candidates:
            track = tracks[candidate.track_id]
            seed = next((s for s in seeds if self.is_variation_of(track, s)), None)
            if seed is not None:
                logger.debug(
                    f"Variation filter: dropping '{track.name}' ({candidate.track_id}) "
                    f"as variation of seed '{seed.name}' ({seed.track_id})"
                )
                continue
            kept.append(candidate)
        return kept

    def collapse_groups(self, candidates: Sequence[Candidate], tracks: Mapping[str, Track]) -> List[Candidate]:
        """
        Group mutual variations against each group's first member and keep the
        highest-similarity member of each group, tagged with the group size.
        """
        groups: List[List[Candidate]] = []
        for candidate in candidates:
            track = tracks[candidate.track_id]
            for group in groups:
                if self.same_group(track, tracks[group[0].track_id]):
                    group.append(candidate)
                    break
            else:
                groups.append([candidate])

        collapsed = []
        for group in groups:
            best = max(group, key=lambda c: c.similarity)
            if len(group) > 1:
                best = replace(best, variation_group_size=len(group))
                logger.debug(
                    f"Variation group of {len(group)} collapsed to {best.track_id}"
                )
            collapsed.append(best)
        return collapsed

    def mark_seed_variations(
        self,
        candidates: Sequence[Candidate],
        tracks: Mapping[str, Track],
        seeds: Sequence[Track],
    ) -> List[Candidate]:
        """Flag candidates whose base name exactly equals a seed's base name."""
        seed_bases = [(seed.track_id, base_track_name(seed.name)) for seed in seeds]
        marked = []
        for candidate in candidates:
            base = base_track_name(tracks[candidate.track_id].name)
            variation_of = next(
                (seed_id for seed_id, seed_base in seed_bases
                 if seed_id != candidate.track_id and base and base == seed_base),
                None,
            )
            if variation_of is not None:
                candidate = replace(candidate, is_variation=True, variation_of=variation_of)
            marked.append(candidate)
        return marked

    def resolve(
        self,
        candidates: Sequence[Candidate],
        tracks: Mapping[str, Track],
        seeds: Sequence[Track],
        allow_variations: bool,
    ) -> List[Candidate]:
        """
        Apply the variation policy.

        Args:
            candidates: Merged candidates
            tracks: track_id -> Track for every candidate
            seeds: Resolved seed tracks
            allow_variations: Lenient (True) or strict (False) policy
        """
        if allow_variations:
            return self.mark_seed_variations(candidates, tracks, seeds)

        before = len(candidates)
        remaining = self.filter_seed_variations(candidates, tracks, seeds)
        after_seed_filter = len(remaining)
        remaining = self.collapse_groups(remaining, tracks)
        logger.info(
            f"Variation filter: {before} -> {after_seed_filter} (seed variations) "
            f"-> {len(remaining)} (grouped)"
        )
        return remaining
