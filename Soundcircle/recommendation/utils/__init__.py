"""Initialization file for the recommendation utilities package."""

from .similarity import raw_cosine_similarity, cosine_similarity, neighbor_similarities, jaccard_similarity
from .era import era_range_score, era_proximity, era_similarity, mean_era_midpoint, year_in_eras
from .decay import days_since, days_since_series, exponential_decay, to_utc, utc_now
from .genres import rank_user_genres, user_genre_set

__all__ = [
    'raw_cosine_similarity',
    'cosine_similarity',
    'neighbor_similarities',
    'jaccard_similarity',
    'era_range_score',
    'era_proximity',
    'era_similarity',
    'mean_era_midpoint',
    'year_in_eras',
    'days_since',
    'days_since_series',
    'exponential_decay',
    'to_utc',
    'utc_now',
    'rank_user_genres',
    'user_genre_set'
]
