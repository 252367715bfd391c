"""Preference-agnostic, time-decayed engagement ranking."""

from datetime import datetime
from typing import Callable, Optional
import logging

import pandas as pd

from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.models import SONG_COLUMNS
from Soundcircle.recommendation.store import MusicStore
from Soundcircle.recommendation.utils.decay import days_since_series, exponential_decay, to_utc, utc_now

logger = logging.getLogger(__name__)


class TrendingEngine:
    """Ranks songs by decayed engagement over a recent window.

    Each review in the window contributes rating * e^(-rate * age_days) to its
    song. No hard filter and no personalization apply.
    """

    output_columns = SONG_COLUMNS + ['engagement', 'score']

    def __init__(
        self,
        store: MusicStore,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.clock = clock

    def engagement(self, reviews: pd.DataFrame, now) -> pd.Series:
        """Summed decayed engagement per song, highest first.

        Reviews older than the window are ignored. Ties are ordered by song ID.
        """
        if reviews is None or reviews.empty:
            return pd.Series(dtype=float, name='engagement')

        now = to_utc(now)
        since = now - pd.Timedelta(days=self.config.trending_window_days)
        created = pd.to_datetime(reviews['created_at'], utc=True)
        recent = reviews[created >= since]
        if recent.empty:
            return pd.Series(dtype=float, name='engagement')

        weights = exponential_decay(days_since_series(recent['created_at'], now), self.config.trending_decay_rate)
        contributions = recent['rating'].astype(float) * weights
        per_song = contributions.groupby(recent['song_id']).sum()
        return per_song.sort_values(ascending=False, kind='mergesort').rename('engagement')

    def trending(self, n: int = 20) -> pd.DataFrame:
        """Top-n trending songs with their engagement, in rank order."""
        if n <= 0:
            raise ValueError(f"Number of trending songs must be positive, got {n}")

        now = to_utc(self.clock())
        since = now - pd.Timedelta(days=self.config.trending_window_days)
        reviews = self.store.get_reviews_since(since.to_pydatetime())
        ranked = self.engagement(reviews, now).head(n)
        if ranked.empty:
            logger.info("No reviews in the last %.0f days; trending is empty", self.config.trending_window_days)
            return pd.DataFrame(columns=self.output_columns)

        songs = self.store.get_songs(list(ranked.index))
        missing = len(ranked) - len(songs)
        if missing:
            logger.warning("%d trending songs are missing from the catalog", missing)
        songs['engagement'] = songs['song_id'].map(ranked).astype(float)
        songs['score'] = songs['engagement']
        songs = songs.sort_values('engagement', ascending=False, kind='mergesort').reset_index(drop=True)

        logger.info("Computed %d trending songs from %d recent reviews", len(songs), len(reviews))
        return songs[self.output_columns]
