"""Symmetric two-user taste compatibility with a time-bounded cache."""

from datetime import datetime
from typing import Callable, Dict, Optional
import logging
import math

from Soundcircle.recommendation.base import fetch_concurrently
from Soundcircle.recommendation.collaborative_filtering import ratings_to_dict
from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.exceptions import StoreUnavailableError
from Soundcircle.recommendation.models import (
    COMPATIBILITY_COMPONENTS,
    CompatibilityEntry,
    CompatibilityResult,
    pair_key,
)
from Soundcircle.recommendation.store import MusicStore
from Soundcircle.recommendation.utils.decay import to_utc, utc_now
from Soundcircle.recommendation.utils.era import era_similarity
from Soundcircle.recommendation.utils.genres import user_genre_set
from Soundcircle.recommendation.utils.similarity import cosine_similarity, jaccard_similarity

logger = logging.getLogger(__name__)


def to_percentage(score: float) -> int:
    """Round half up to a whole percentage."""
    return int(math.floor(score * 100 + 0.5))


class TasteCompatibility:
    """Computes, caches and serves compatibility between two users.

    Components:
        cf: cosine over commonly rated songs (0 without overlap)
        genre: Jaccard of each user's high-rated genre set
        artist: Jaccard of favorite artists
        language: Jaccard of preferred languages
        era: 1 - |mean era midpoint A - mean era midpoint B| / gap, floored at 0

    Cache entries older than the TTL are ignored and recomputed.
    """

    def __init__(
        self,
        store: MusicStore,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.clock = clock

    def is_fresh(self, entry: CompatibilityEntry, now) -> bool:
        age = (to_utc(now) - to_utc(entry.computed_at)).total_seconds()
        return age < self.config.cache_ttl_seconds

    def _user_snapshot(self, user_id: str) -> Dict:
        reviews = self.store.get_reviews_by_user(user_id)
        rated_songs = self.store.get_songs(list(reviews['song_id'])) if not reviews.empty else None
        return {
            'ratings': ratings_to_dict(reviews),
            'genres': user_genre_set(reviews, rated_songs, self.config.high_rating_threshold),
            'profile': self.store.get_preference_profile(user_id),
        }

    def compute_components(self, user_a: str, user_b: str) -> Dict[str, float]:
        """The five compatibility components, each in [0, 1]."""
        snapshots = fetch_concurrently(self._user_snapshot, [user_a, user_b], self.config.max_workers)
        a, b = snapshots[user_a], snapshots[user_b]
        profile_a, profile_b = a['profile'], b['profile']

        components = {
            'cf': cosine_similarity(a['ratings'], b['ratings']),
            'genre': jaccard_similarity(a['genres'], b['genres']),
            'artist': jaccard_similarity(profile_a.favorite_artists, profile_b.favorite_artists),
            'language': jaccard_similarity(profile_a.preferred_languages, profile_b.preferred_languages),
            'era': era_similarity(profile_a.preferred_eras, profile_b.preferred_eras, self.config.era_gap_years),
        }
        for component, value in components.items():
            assert 0.0 <= value <= 1.0, f"compatibility {component} score {value} outside [0, 1]"
        return components

    def combine(self, components: Dict[str, float]) -> float:
        weights = self.config.compatibility_weights
        score = sum(weights[name] * components[name] for name in COMPATIBILITY_COMPONENTS)
        return max(0.0, min(1.0, score))

    def compatibility(self, user_a: str, user_b: str, force_refresh: bool = False) -> CompatibilityResult:
        """Compatibility of two users, served from cache while fresh.

        Args:
            user_a: First user
            user_b: Second user (argument order does not matter)
            force_refresh: Recompute even if a fresh cache entry exists

        Raises:
            ValueError: If both IDs are the same user
        """
        if user_a == user_b:
            raise ValueError("Compatibility is only defined between two different users")

        key = pair_key(user_a, user_b)
        now = self.clock()

        if not force_refresh:
            cached = self.store.get_compatibility_cache(key)
            if cached is not None and self.is_fresh(cached, now):
                logger.debug("Compatibility cache hit for %s", key)
                return CompatibilityResult(cached.score, to_percentage(cached.score), cached.components())
            logger.debug("Compatibility cache %s for %s", "stale" if cached is not None else "miss", key)

        components = self.compute_components(*key)
        score = self.combine(components)
        entry = CompatibilityEntry(score=score, computed_at=now, **components)
        try:
            self.store.upsert_compatibility_cache(key, entry)
        except StoreUnavailableError as e:
            logger.error(f"Error saving compatibility cache for {key}: {e}")

        logger.info("Computed compatibility %s = %.3f", key, score)
        return CompatibilityResult(score, to_percentage(score), entry.components())
