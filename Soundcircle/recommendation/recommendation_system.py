"""Public entry point: mode selection, recommendations, trending and compatibility."""

from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional
import logging

import pandas as pd

from Soundcircle.recommendation.base import RecommenderBase
from Soundcircle.recommendation.cold_start import ColdStartRecommender
from Soundcircle.recommendation.compatibility import TasteCompatibility
from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.evaluation import RecommendationEvaluator
from Soundcircle.recommendation.exceptions import RecommendationUnavailableError, StoreUnavailableError
from Soundcircle.recommendation.hybrid_recommender import HybridRecommender
from Soundcircle.recommendation.models import CompatibilityResult, SentimentAnnotation
from Soundcircle.recommendation.sentiment import analyze_and_store_sentiment
from Soundcircle.recommendation.store import MusicStore
from Soundcircle.recommendation.trending import TrendingEngine
from Soundcircle.recommendation.utils.decay import utc_now

logger = logging.getLogger(__name__)


class RecommendationMode(Enum):
    COLD_START = "cold_start"
    HYBRID = "hybrid"


def select_mode(review_count: int, threshold: int = 5) -> RecommendationMode:
    """Users with fewer than *threshold* reviews are scored by cold start, everyone else by hybrid."""
    return RecommendationMode.COLD_START if review_count < threshold else RecommendationMode.HYBRID


class RecommendationSystem:
    """Main class orchestrating the scoring engines.

    Each request picks exactly one scoring mode up front. Store failures
    surface as ``RecommendationUnavailableError``; an empty result is a valid
    answer and is returned as an empty DataFrame.
    """

    def __init__(
        self,
        store: MusicStore,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], datetime] = utc_now,
        record_metrics: bool = False
    ):
        """Initialize the recommendation system.

        Args:
            store: External store to read from and write caches to
            config: Engine configuration; defaults are used if not provided
            clock: Callable returning the current time
            record_metrics: Log served hybrid recommendations to the store
        """
        self.store = store
        self.config = config or EngineConfig()
        self.clock = clock
        self.record_metrics = record_metrics
        self.recommenders: Dict[RecommendationMode, RecommenderBase] = {
            RecommendationMode.COLD_START: ColdStartRecommender(store, self.config, name=RecommendationMode.COLD_START.value, clock=clock),
            RecommendationMode.HYBRID: HybridRecommender(store, self.config, name=RecommendationMode.HYBRID.value, clock=clock),
        }
        self.trending_engine = TrendingEngine(store, self.config, clock=clock)
        self.compatibility_engine = TasteCompatibility(store, self.config, clock=clock)
        self.evaluator = RecommendationEvaluator()
        logger.info("Recommendation system initialized with %r", self.config)

    def select_mode(self, review_count: int) -> RecommendationMode:
        return select_mode(review_count, self.config.cold_start_threshold)

    def recommend(self, user_id: str, n: int = 20, verbose: bool = False) -> pd.DataFrame:
        """Ranked recommendations for a user, by cold start or hybrid scoring, never both.

        Args:
            user_id: Target user ID
            n: Number of recommendations
            verbose: Show a progress bar while scoring

        Returns:
            DataFrame of songs in rank order with 'score' and 'mode' columns

        Raises:
            ValueError: If n is not positive
            RecommendationUnavailableError: If the store could not be read
        """
        if n <= 0:
            raise ValueError(f"Number of recommendations must be positive, got {n}")

        try:
            user_reviews = self.store.get_reviews_by_user(user_id)
            mode = self.select_mode(len(user_reviews))
            logger.info("User %s has %d reviews; using %s scoring", user_id, len(user_reviews), mode.value)
            profile = self.store.get_preference_profile(user_id)
            recommendations = self.recommenders[mode].recommend(
                user_id, n=n, profile=profile, user_reviews=user_reviews, verbose=verbose
            )
        except StoreUnavailableError as e:
            logger.error("Recommendations for user %s failed: %s", user_id, e)
            raise RecommendationUnavailableError() from e

        assert recommendations.empty or set(recommendations['mode']) == {mode.value}, \
            f"User {user_id} was scored by more than one mode"

        if self.record_metrics and mode is RecommendationMode.HYBRID and not recommendations.empty:
            self._record(recommendations)
        return recommendations

    def _record(self, recommendations: pd.DataFrame) -> None:
        rows = self.evaluator.build_metric_rows(recommendations, self.config.algorithm_version, self.clock())
        try:
            self.store.record_recommendation_metrics(rows)
        except StoreUnavailableError as e:
            logger.error(f"Error saving recommendation metrics: {e}")

    def trending(self, n: int = 20) -> pd.DataFrame:
        """Songs ranked by decayed engagement over the trending window.

        Raises:
            RecommendationUnavailableError: If the store could not be read
        """
        try:
            return self.trending_engine.trending(n)
        except StoreUnavailableError as e:
            logger.error("Trending failed: %s", e)
            raise RecommendationUnavailableError() from e

    def compatibility(self, user_a: str, user_b: str) -> CompatibilityResult:
        """Taste compatibility of two users as a score, a percentage and five components.

        Raises:
            ValueError: If both IDs are the same user
            RecommendationUnavailableError: If the store could not be read
        """
        try:
            return self.compatibility_engine.compatibility(user_a, user_b)
        except StoreUnavailableError as e:
            logger.error("Compatibility of %s and %s failed: %s", user_a, user_b, e)
            raise RecommendationUnavailableError("compatibility unavailable, retry") from e

    def annotate_review(self, review_id: str, review_text: Optional[str]) -> SentimentAnnotation:
        """Produce and store the sentiment annotation of a saved review."""
        return analyze_and_store_sentiment(self.store, review_id, review_text)
