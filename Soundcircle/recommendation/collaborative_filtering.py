"""User-based collaborative filtering scorer."""

from typing import Dict, Mapping, Optional
import logging

import pandas as pd

from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.utils.similarity import neighbor_similarities

logger = logging.getLogger(__name__)

NEUTRAL_CF_SCORE = 0.5
MIN_RATING = 0.5
RATING_SPAN = 4.5


def normalize_rating(prediction: float) -> float:
    """Map a predicted rating on the 0.5-5 scale onto [0, 1]."""
    return max(0.0, min(1.0, (prediction - MIN_RATING) / RATING_SPAN))


def ratings_to_dict(ratings: pd.DataFrame) -> Dict[str, float]:
    """{song_id: rating} from a frame with 'song_id' and 'rating' columns."""
    if ratings is None or ratings.empty:
        return {}
    return {song_id: float(rating) for song_id, rating in zip(ratings['song_id'], ratings['rating'])}


class CollaborativeFilteringScorer:
    """Predicts a user's affinity for a song from the ratings of similar users.

    Similarity is cosine over the songs both users rated, clamped at 0 so a
    dissimilar neighbour is ignored rather than inverted.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def similarities(
        self,
        user_ratings: Mapping[str, float],
        neighbor_ratings: Mapping[str, Mapping[str, float]]
    ) -> Dict[str, float]:
        return neighbor_similarities(user_ratings, neighbor_ratings)

    def predict_rating(
        self,
        user_id: str,
        song_reviews: pd.DataFrame,
        similarities: Mapping[str, float]
    ) -> Optional[float]:
        """Similarity-weighted mean of other users' ratings, or None without positive evidence."""
        if song_reviews is None or song_reviews.empty:
            return None

        numerator = 0.0
        denominator = 0.0
        for other_id, rating in zip(song_reviews['user_id'], song_reviews['rating']):
            if other_id == user_id:
                continue
            similarity = max(0.0, similarities.get(other_id, 0.0))
            if similarity <= 0:
                continue
            numerator += similarity * float(rating)
            denominator += similarity

        if denominator == 0:
            return None
        return numerator / denominator

    def score(
        self,
        user_id: str,
        song_reviews: pd.DataFrame,
        similarities: Mapping[str, float]
    ) -> float:
        """CF component in [0, 1]; 0.5 when no neighbour carries positive similarity.

        Args:
            user_id: Target user
            song_reviews: All reviews of the song ('user_id', 'rating')
            similarities: Effective similarity of the target to each reviewer
        """
        prediction = self.predict_rating(user_id, song_reviews, similarities)
        if prediction is None:
            return NEUTRAL_CF_SCORE
        return normalize_rating(prediction)
