"""Genre profile helpers derived from a user's high ratings."""

from typing import Dict, List, Set
import pandas as pd
import logging

logger = logging.getLogger(__name__)


def _high_rated_genre_lists(ratings: pd.DataFrame, songs: pd.DataFrame, threshold: float) -> List[List[str]]:
    if ratings is None or ratings.empty or songs is None or songs.empty:
        return []
    high = ratings[ratings['rating'] >= threshold]
    if high.empty:
        return []
    song_to_genres: Dict[str, List[str]] = dict(zip(songs['song_id'], songs['genre']))
    missing = 0
    genre_lists = []
    for song_id in high['song_id']:
        genres = song_to_genres.get(song_id)
        if not isinstance(genres, (list, tuple)):
            missing += 1
            continue
        genre_lists.append(list(genres))
    if missing:
        logger.debug("Missing genres for %d high-rated songs", missing)
    return genre_lists


def rank_user_genres(ratings: pd.DataFrame, songs: pd.DataFrame, threshold: float = 4.0) -> List[str]:
    """Genres of songs the user rated at or above *threshold*, most frequent first.

    Args:
        ratings: DataFrame with 'song_id' and 'rating' columns
        songs: DataFrame with 'song_id' and 'genre' (list of tags) columns
        threshold: Minimum rating for a song to count

    Returns:
        Genre list ordered by frequency descending; ties keep first-seen order
    """
    counts: Dict[str, int] = {}
    for genres in _high_rated_genre_lists(ratings, songs, threshold):
        for genre in genres:
            counts[genre] = counts.get(genre, 0) + 1
    # sorted() is stable, so equal counts stay in insertion order
    return sorted(counts, key=lambda g: -counts[g])


def user_genre_set(ratings: pd.DataFrame, songs: pd.DataFrame, threshold: float = 4.0) -> Set[str]:
    """Unranked genre set used for Jaccard comparisons."""
    return {genre for genres in _high_rated_genre_lists(ratings, songs, threshold) for genre in genres}
