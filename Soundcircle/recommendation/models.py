"""Record types shared by the store and the scoring components."""

from datetime import datetime
from typing import Dict, FrozenSet, Iterable, Mapping, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

SONG_COLUMNS = ['song_id', 'artist_id', 'title', 'genre', 'language', 'release_year', 'popularity_30d']
REVIEW_COLUMNS = ['review_id', 'user_id', 'song_id', 'rating', 'review_text', 'created_at', 'updated_at']
SENTIMENT_COLUMNS = ['review_id', 'sentiment_score', 'toxicity_score', 'emotion_tags']

COMPONENT_NAMES = ('genre', 'cf', 'community', 'artist', 'language', 'era')
COMPATIBILITY_COMPONENTS = ('cf', 'genre', 'artist', 'language', 'era')
# Hybrid output column per component (songs already carry 'genre' and 'language')
COMPONENT_COLUMNS = tuple(f'{name}_score' for name in COMPONENT_NAMES)

MAX_FAVORITE_ARTISTS = 4


class EraRange(NamedTuple):
    """Inclusive range of release years."""
    start: int
    end: int

    @property
    def midpoint(self) -> float:
        return (self.start + self.end) / 2


class PreferenceProfile(NamedTuple):
    """Onboarding preferences of a user. Empty collections mean no restriction."""
    preferred_languages: FrozenSet[str] = frozenset()
    preferred_eras: Tuple[EraRange, ...] = ()
    favorite_artists: Tuple[str, ...] = ()


class SentimentAnnotation(NamedTuple):
    sentiment: float
    toxicity: float
    emotions: Tuple[str, ...] = ()


class FollowEdges(NamedTuple):
    following: FrozenSet[str] = frozenset()
    followers: FrozenSet[str] = frozenset()


class CompatibilityEntry(NamedTuple):
    """Cached compatibility of an unordered user pair."""
    score: float
    cf: float
    genre: float
    artist: float
    language: float
    era: float
    computed_at: datetime

    def components(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in COMPATIBILITY_COMPONENTS}


class CompatibilityResult(NamedTuple):
    score: float
    percentage: int
    components: Dict[str, float]


def pair_key(user_a: str, user_b: str) -> Tuple[str, str]:
    """Order-independent key for a pair of users."""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


def annotation_from_row(row) -> Optional[SentimentAnnotation]:
    """Build the sentiment annotation joined onto a review row, or None if it has not landed yet.

    A row carrying only one of the two scores still counts as annotated; the
    missing score defaults to 0.
    """
    sentiment = row.get('sentiment_score')
    toxicity = row.get('toxicity_score')
    sentiment_missing = sentiment is None or pd.isna(sentiment)
    toxicity_missing = toxicity is None or pd.isna(toxicity)
    if sentiment_missing and toxicity_missing:
        return None
    sentiment = 0.0 if sentiment_missing else sentiment
    toxicity = 0.0 if toxicity_missing else toxicity
    emotions = row.get('emotion_tags')
    if not isinstance(emotions, (list, tuple)):
        emotions = ()
    return SentimentAnnotation(float(sentiment), float(toxicity), tuple(emotions))


def era_from_value(value) -> EraRange:
    """Era from a ``{'start': ..., 'end': ...}`` mapping or a ``(start, end)`` pair.

    Raises:
        ValueError: If the value has neither shape or start is after end
    """
    if isinstance(value, Mapping):
        if 'start' not in value or 'end' not in value:
            raise ValueError(f"Era needs 'start' and 'end', got {dict(value)}")
        start, end = value['start'], value['end']
    else:
        try:
            start, end = value
        except (TypeError, ValueError):
            raise ValueError(f"Era must be a {{start, end}} mapping or a (start, end) pair, got {value!r}") from None
    start, end = int(start), int(end)
    if start > end:
        raise ValueError(f"Era start {start} is after end {end}")
    return EraRange(start, end)


def build_preference_profile(
    preferred_languages: Iterable[str] = (),
    preferred_eras: Iterable = (),
    favorite_artists: Sequence[str] = ()
) -> PreferenceProfile:
    """Validated profile: well-formed eras and at most four favorite artists."""
    eras = tuple(era_from_value(era) for era in preferred_eras)
    favorite_artists = tuple(favorite_artists)
    if len(favorite_artists) > MAX_FAVORITE_ARTISTS:
        raise ValueError(f"At most {MAX_FAVORITE_ARTISTS} favorite artists are allowed")
    return PreferenceProfile(frozenset(preferred_languages), eras, favorite_artists)
