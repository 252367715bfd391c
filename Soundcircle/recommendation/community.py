"""Community emotional score: recency-, sentiment- and socially-weighted review aggregate."""

from typing import Mapping, Optional
import logging

import pandas as pd

from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.models import SentimentAnnotation, annotation_from_row
from Soundcircle.recommendation.utils.decay import days_since, exponential_decay

logger = logging.getLogger(__name__)

NEUTRAL_COMMUNITY_SCORE = 0.5
MAX_RATING = 5.0


def sentiment_multiplier(
    annotation: Optional[SentimentAnnotation],
    theta: float = 0.2,
    toxicity_threshold: float = 0.5
) -> float:
    """Multiplier applied to a review's decayed rating.

    None (annotation not produced yet) is neutral, 1.0. Toxic reviews get 0
    whatever their sentiment. Otherwise ``1 + theta * sentiment``.
    """
    if annotation is None:
        return 1.0
    if annotation.toxicity > toxicity_threshold:
        return 0.0
    return 1.0 + theta * annotation.sentiment


class CommunityEmotionalScorer:
    """Aggregates a song's reviews into a single score in [0, 1]."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def score(self, reviews: pd.DataFrame, social_weights: Mapping[str, float], now) -> float:
        """Compute the community score of one song.

        Args:
            reviews: The song's reviews ('user_id', 'rating', 'created_at' and the
                optional sentiment columns)
            social_weights: Viewer's weight per reviewer; unknown reviewers get the base weight
            now: Reference time for recency decay

        Returns:
            sum(weight * multiplier * decayed rating) / sum(weight) / 5, clamped to
            [0, 1]; 0.5 when there is nothing to aggregate
        """
        if reviews is None or reviews.empty:
            return NEUTRAL_COMMUNITY_SCORE

        weighted_sum = 0.0
        total_weight = 0.0
        for review in reviews.to_dict('records'):
            decayed = float(review['rating']) * exponential_decay(
                days_since(review['created_at'], now), self.config.community_decay_rate
            )
            multiplier = sentiment_multiplier(
                annotation_from_row(review),
                theta=self.config.sentiment_theta,
                toxicity_threshold=self.config.toxicity_threshold
            )
            weight = social_weights.get(review['user_id'], self.config.base_social_weight)
            weighted_sum += weight * multiplier * decayed
            total_weight += weight

        if total_weight == 0:
            return NEUTRAL_COMMUNITY_SCORE
        return max(0.0, min(1.0, weighted_sum / total_weight / MAX_RATING))
