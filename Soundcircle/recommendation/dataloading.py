"""Data loading orchestrator for the music recommendation system."""

import os
from typing import Optional
import pandas as pd
import logging

from Soundcircle.recommendation.song_loader import SongLoader
from Soundcircle.recommendation.store import InMemoryStore
from Soundcircle.recommendation.user_loader import UserLoader
from Soundcircle.recommendation.utils.decay import utc_now

logger = logging.getLogger(__name__)


class RecommendationDataManager:
    """Manager for loading a data directory into an in-memory store."""

    def __init__(self, data_dir: str):
        """Initialize the data manager.

        Args:
            data_dir: Directory containing all recommendation data files

        Raises:
            FileNotFoundError: If data_dir does not exist
        """
        if not os.path.exists(data_dir):
            raise FileNotFoundError(f"Data directory {data_dir} does not exist")
        self.data_dir = data_dir
        self.song_loader = SongLoader(data_dir)
        self.user_loader = UserLoader(data_dir)
        self.songs: Optional[pd.DataFrame] = None
        self.artists: Optional[pd.DataFrame] = None

    def load_all_data(self) -> None:
        """Load every file in the data directory and cache it.

        Raises:
            FileNotFoundError: If the song catalog is missing
            ValueError: If the song catalog is empty or malformed
        """
        logger.info("Loading songs and artists")
        self.songs = self.song_loader.load_songs()
        if self.songs.empty:
            raise ValueError("Song catalog is empty")
        self.artists = self.song_loader.load_artists()

        logger.info("Loading reviews, sentiment, preferences and follows")
        self.user_loader.load_reviews()
        self.user_loader.load_sentiment()
        self.user_loader.load_preferences()
        self.user_loader.load_follows()

        logger.info("Loaded data: %d songs, %d reviews, %d users with preferences, %d follow edges",
                    len(self.songs),
                    len(self.user_loader.reviews),
                    len(self.user_loader.preferences),
                    len(self.user_loader.follows))

    def build_store(self, clock=utc_now) -> InMemoryStore:
        """Build an in-memory store from the loaded data, loading it first if needed."""
        if self.songs is None:
            self.load_all_data()
        return InMemoryStore(
            songs=self.songs,
            artists=self.artists if self.artists is not None and not self.artists.empty else None,
            reviews=self.user_loader.reviews if not self.user_loader.reviews.empty else None,
            sentiment=self.user_loader.sentiment if not self.user_loader.sentiment.empty else None,
            follows=self.user_loader.follows,
            preferences=self.user_loader.preferences,
            clock=clock,
        )
