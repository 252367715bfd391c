"""Hybrid recommender: hard-filtered candidates scored on six blended taste signals."""

import logging
from typing import Dict, Mapping, Optional, Set

import pandas as pd
from tqdm import tqdm

from Soundcircle.recommendation.base import RecommenderBase, fetch_concurrently
from Soundcircle.recommendation.collaborative_filtering import CollaborativeFilteringScorer, ratings_to_dict
from Soundcircle.recommendation.community import CommunityEmotionalScorer
from Soundcircle.recommendation.hard_filter import apply_hard_filter
from Soundcircle.recommendation.models import COMPONENT_COLUMNS, COMPONENT_NAMES, PreferenceProfile
from Soundcircle.recommendation.social import SocialWeightCalculator
from Soundcircle.recommendation.utils.era import era_proximity
from Soundcircle.recommendation.utils.genres import user_genre_set
from Soundcircle.recommendation.utils.similarity import jaccard_similarity

logger = logging.getLogger(__name__)


class HybridRecommender(RecommenderBase):
    """Hybrid recommender blending six taste signals into one bounded score.

    score = w_genre*genre + w_cf*cf + w_community*community + w_artist*artist
            + w_language*language + w_era*era, clamped to [0, 1].
    """

    output_columns = RecommenderBase.output_columns + list(COMPONENT_COLUMNS)

    def __init__(
        self,
        store,
        config=None,
        name: str = "hybrid",
        cf_scorer: Optional[CollaborativeFilteringScorer] = None,
        community_scorer: Optional[CommunityEmotionalScorer] = None,
        social_calculator: Optional[SocialWeightCalculator] = None,
        **kwargs
    ):
        super().__init__(store, config=config, name=name, **kwargs)
        self.cf_scorer = cf_scorer or CollaborativeFilteringScorer(self.config)
        self.community_scorer = community_scorer or CommunityEmotionalScorer(self.config)
        self.social_calculator = social_calculator or SocialWeightCalculator(self.store, self.config)
        logger.info("Hybrid weights initialized: %s", self.config.hybrid_weights)

    def _candidate_pool(self, user_id: str, profile: PreferenceProfile, rated: Set[str]) -> pd.DataFrame:
        """Capped, hard-filtered, not-yet-rated candidates in store order."""
        cap = self.config.candidate_cap
        candidates = self.store.get_candidate_songs(
            languages=profile.preferred_languages,
            eras=profile.preferred_eras,
            cap=cap
        )
        if len(candidates) > cap:
            logger.warning("Store returned %d candidates; truncating to %d", len(candidates), cap)
            candidates = candidates.head(cap)

        candidates = apply_hard_filter(candidates, profile)
        candidates = candidates[~candidates['song_id'].isin(list(rated))].reset_index(drop=True)
        logger.debug("User %s: %d candidates after filtering and excluding rated songs", user_id, len(candidates))
        return candidates

    def score_components(
        self,
        user_id: str,
        song: Mapping,
        profile: PreferenceProfile,
        user_genres: Set[str],
        song_reviews: pd.DataFrame,
        similarities: Mapping[str, float],
        social_weights: Mapping[str, float],
        now
    ) -> Dict[str, float]:
        """The six component scores of one candidate, each in [0, 1]."""
        year = song.get('release_year')
        genres = song.get('genre')
        if not isinstance(genres, (list, tuple, set, frozenset)):
            genres = ()
        components = {
            'genre': jaccard_similarity(genres, user_genres),
            'cf': self.cf_scorer.score(user_id, song_reviews, similarities),
            'community': self.community_scorer.score(song_reviews, social_weights, now),
            'artist': 1.0 if song.get('artist_id') in profile.favorite_artists else 0.0,
            'language': 1.0 if song.get('language') in profile.preferred_languages else 0.0,
            'era': era_proximity(None if pd.isna(year) else int(year), profile.preferred_eras),
        }
        for component, value in components.items():
            assert 0.0 <= value <= 1.0, f"{component} score {value} outside [0, 1] for song {song.get('song_id')}"
        return components

    def combine(self, components: Mapping[str, float]) -> float:
        weights = self.config.hybrid_weights
        score = sum(weights[name] * components[name] for name in COMPONENT_NAMES)
        return max(0.0, min(1.0, score))

    def recommend(
        self,
        user_id: str,
        n: int = 20,
        profile: Optional[PreferenceProfile] = None,
        user_reviews: Optional[pd.DataFrame] = None,
        verbose: bool = False,
        **kwargs
    ) -> pd.DataFrame:
        """
        Generates hybrid recommendations: hard filter, per-signal scores, weighted sum, rank.

        Ties keep candidate (store) order.
        """
        self._check_limit(n)
        if profile is None:
            profile = self.store.get_preference_profile(user_id)
        if user_reviews is None:
            user_reviews = self.store.get_reviews_by_user(user_id)
        user_ratings = ratings_to_dict(user_reviews)
        now = self.clock()

        candidates = self._candidate_pool(user_id, profile, set(user_ratings))
        if candidates.empty:
            logger.warning("No hybrid candidates left for user %s after filtering", user_id)
            return self._empty_frame()

        workers = self.config.max_workers
        rated_songs = self.store.get_songs(list(user_ratings))
        user_genres = user_genre_set(user_reviews, rated_songs, self.config.high_rating_threshold)

        song_reviews = fetch_concurrently(self.store.get_reviews_by_song, candidates['song_id'], workers)
        reviewer_ids = [
            uid for reviews in song_reviews.values() for uid in reviews['user_id'] if uid != user_id
        ]
        neighbor_reviews = fetch_concurrently(self.store.get_reviews_by_user, reviewer_ids, workers)
        neighbor_ratings = {uid: ratings_to_dict(reviews) for uid, reviews in neighbor_reviews.items()}
        similarities = self.cf_scorer.similarities(user_ratings, neighbor_ratings)
        social_weights = self.social_calculator.weights_for(user_id, neighbor_ratings)

        rows = []
        for song in tqdm(candidates.to_dict('records'), desc="Scoring candidates", leave=False, disable=not verbose):
            components = self.score_components(
                user_id, song, profile, user_genres,
                song_reviews[song['song_id']], similarities, social_weights, now
            )
            scored = {f'{name}_score': value for name, value in components.items()}
            rows.append({**song, **scored, 'score': self.combine(components)})

        recs = pd.DataFrame(rows)
        recs['user_id'] = user_id
        recs['mode'] = self.name
        recs = recs.sort_values('score', ascending=False, kind='mergesort').head(n).reset_index(drop=True)

        logger.info("Generated %d hybrid recommendations for user %s from %d candidates", len(recs), user_id, len(candidates))
        return recs[self.output_columns + [c for c in recs.columns if c not in self.output_columns]]
