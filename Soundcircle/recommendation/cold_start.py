"""Popularity + affinity heuristic for users with too little history."""

from typing import Optional
import logging

import pandas as pd

from Soundcircle.recommendation.base import RecommenderBase
from Soundcircle.recommendation.hard_filter import apply_hard_filter
from Soundcircle.recommendation.models import PreferenceProfile

logger = logging.getLogger(__name__)


class ColdStartRecommender(RecommenderBase):
    """Ranks language-admitted songs by recent popularity plus preference bonuses.

    score = popularity_30d + artist bonus (favorite artist) + language bonus
    (preferred language). The score is unbounded; it only orders songs.
    Era preferences are not applied. The candidate pool is the most popular
    language-admitted songs up to the candidate cap.
    """

    def __init__(self, store, config=None, name: str = "cold_start", **kwargs):
        super().__init__(store, config=config, name=name, **kwargs)

    def recommend(
        self,
        user_id: str,
        n: int = 20,
        profile: Optional[PreferenceProfile] = None,
        **kwargs
    ) -> pd.DataFrame:
        self._check_limit(n)
        if profile is None:
            profile = self.store.get_preference_profile(user_id)

        candidates = self.store.get_candidate_songs(
            languages=profile.preferred_languages,
            eras=None,
            cap=self.config.candidate_cap,
            order_by='popularity_30d'
        )
        candidates = apply_hard_filter(candidates.head(self.config.candidate_cap), profile, use_eras=False)
        if candidates.empty:
            logger.warning("No cold-start candidates for user %s", user_id)
            return self._empty_frame()

        favorites = set(profile.favorite_artists)
        popularity = pd.to_numeric(candidates['popularity_30d'], errors='coerce').fillna(0.0)
        artist_bonus = candidates['artist_id'].isin(list(favorites)).astype(float) * self.config.cold_start_artist_bonus
        language_bonus = candidates['language'].isin(list(profile.preferred_languages)).astype(float) * self.config.cold_start_language_bonus

        recs = candidates.copy()
        recs['score'] = popularity + artist_bonus + language_bonus
        recs['user_id'] = user_id
        recs['mode'] = self.name
        recs = recs.sort_values('score', ascending=False, kind='mergesort').head(n).reset_index(drop=True)

        logger.info("Generated %d cold-start recommendations for user %s from %d candidates", len(recs), user_id, len(candidates))
        return recs[self.output_columns + [c for c in recs.columns if c not in self.output_columns]]
