"""Loader for user-related data in the music recommendation system."""

import json
import os
import pandas as pd
import logging
from typing import Dict

from Soundcircle.recommendation.models import build_preference_profile
from Soundcircle.recommendation.song_loader import split_list_cell

logger = logging.getLogger(__name__)


class UserLoader:
    """Loader for reviews, sentiment annotations, preferences and follow edges."""

    def __init__(self, data_dir: str):
        """Initialize the user loader.

        Args:
            data_dir: Directory containing user data files

        Raises:
            FileNotFoundError: If data_dir does not exist
        """
        if not os.path.exists(data_dir):
            raise FileNotFoundError(f"Data directory {data_dir} does not exist")
        self.data_dir = data_dir
        self.reviews = None
        self.sentiment = None
        self.preferences = None
        self.follows = None

    def load_reviews(self) -> None:
        """Load and standardize reviews."""
        reviews_path = os.path.join(self.data_dir, "reviews.csv")

        if not os.path.exists(reviews_path):
            logger.warning("No reviews found at %s", reviews_path)
            self.reviews = pd.DataFrame()
            return

        logger.info("Loading reviews from %s", reviews_path)
        self.reviews = pd.read_csv(reviews_path, dtype={'review_id': str, 'user_id': str, 'song_id': str})
        self._standardize_review_columns()

    def _standardize_review_columns(self) -> None:
        """Standardize column names in the reviews DataFrame."""
        column_mapping = {
            'user': 'user_id',
            'song': 'song_id',
            'track_id': 'song_id',
            'text': 'review_text',
            'timestamp': 'created_at',
        }
        self.reviews = self.reviews.rename(columns={
            k: v for k, v in column_mapping.items() if k in self.reviews.columns
        })
        if 'review_id' not in self.reviews.columns:
            self.reviews['review_id'] = self.reviews['user_id'] + ':' + self.reviews['song_id']
        logger.info("Standardized review columns: %s", self.reviews.columns.tolist())

    def load_sentiment(self) -> None:
        """Load sentiment annotations; 'emotion_tags' cells are '|'-separated."""
        sentiment_path = os.path.join(self.data_dir, "sentiment.csv")

        if not os.path.exists(sentiment_path):
            logger.info("No sentiment annotations at %s", sentiment_path)
            self.sentiment = pd.DataFrame()
            return

        logger.info("Loading sentiment annotations from %s", sentiment_path)
        sentiment = pd.read_csv(sentiment_path, dtype={'review_id': str})
        if 'emotion_tags' in sentiment.columns:
            sentiment['emotion_tags'] = sentiment['emotion_tags'].map(split_list_cell)
        self.sentiment = sentiment

    def load_preferences(self) -> None:
        """Load and parse user preferences."""
        preferences_path = os.path.join(self.data_dir, "preferences.json")

        if os.path.exists(preferences_path):
            logger.info("Loading user preferences from %s", preferences_path)
            with open(preferences_path, 'r') as f:
                self._parse_preferences(json.load(f))
        else:
            logger.warning("No user preferences file found at %s", preferences_path)
            self.preferences = {}

    def _parse_preferences(self, raw: Dict) -> None:
        """Convert the JSON mapping of user ID to preferences into profiles.

        Eras may be written as {"start": 1990, "end": 1999} or [1990, 1999].

        Raises:
            ValueError: If a user's preferences are malformed
        """
        self.preferences = {}
        for user_id, prefs in raw.items():
            try:
                profile = build_preference_profile(
                    preferred_languages=prefs.get('preferred_languages', []),
                    preferred_eras=prefs.get('preferred_eras', []),
                    favorite_artists=prefs.get('favorite_artists', []),
                )
            except ValueError as e:
                raise ValueError(f"Invalid preferences for user {user_id}: {e}") from e
            self.preferences[str(user_id)] = profile
        logger.info("Parsed preferences for %d users", len(self.preferences))

    def load_follows(self) -> None:
        """Load directed follower -> following edges."""
        follows_path = os.path.join(self.data_dir, "follows.csv")

        if not os.path.exists(follows_path):
            logger.info("No follow edges at %s", follows_path)
            self.follows = pd.DataFrame(columns=['follower_id', 'following_id'])
            return

        logger.info("Loading follow edges from %s", follows_path)
        self.follows = pd.read_csv(follows_path, dtype=str)
