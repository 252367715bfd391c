"""Read/write interface over the external persistent store, plus an in-memory implementation."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import uuid

import numpy as np
import pandas as pd

from Soundcircle.recommendation.models import (
    REVIEW_COLUMNS,
    SENTIMENT_COLUMNS,
    SONG_COLUMNS,
    CompatibilityEntry,
    EraRange,
    FollowEdges,
    PreferenceProfile,
    SentimentAnnotation,
    build_preference_profile,
    pair_key,
)
from Soundcircle.recommendation.utils.decay import to_utc, utc_now

logger = logging.getLogger(__name__)

ARTIST_COLUMNS = ['artist_id', 'name', 'primary_genre', 'language', 'era_start', 'era_end', 'external_id']
METRIC_COLUMNS = [
    'user_id', 'song_id', 'algorithm_version', 'score', 'score_components',
    'was_interacted', 'interaction_type', 'created_at'
]



class MusicStore(ABC):
    """Interface the engine reads from and writes derived data to.

    Implementations raise ``StoreUnavailableError`` when the backing store
    cannot be reached. Missing rows are never errors: they come back as empty
    frames, empty profiles or ``None``.
    """

    @abstractmethod
    def get_preference_profile(self, user_id: str) -> PreferenceProfile:
        """Return the user's profile, or an empty default if none was saved."""

    @abstractmethod
    def get_reviews_by_user(self, user_id: str) -> pd.DataFrame:
        """Reviews authored by the user with at least 'song_id' and 'rating' columns."""

    @abstractmethod
    def get_reviews_by_song(self, song_id: str) -> pd.DataFrame:
        """Reviews of a song with 'review_id', 'user_id', 'rating', 'created_at' and the
        joined 'sentiment_score', 'toxicity_score', 'emotion_tags' (null when absent)."""

    @abstractmethod
    def get_reviews_since(self, since: datetime) -> pd.DataFrame:
        """Reviews created at or after *since* with 'song_id', 'rating', 'created_at'."""

    @abstractmethod
    def get_candidate_songs(
        self,
        languages: Optional[Iterable[str]] = None,
        eras: Optional[Sequence[EraRange]] = None,
        cap: int = 1000,
        order_by: Optional[str] = None
    ) -> pd.DataFrame:
        """Up to *cap* catalog songs, pre-filtered by language and era when given.

        With *order_by*, the highest values of that column are kept (ties in
        catalog order); otherwise the cap takes songs in catalog order.
        """

    @abstractmethod
    def get_songs(self, song_ids: Sequence[str]) -> pd.DataFrame:
        """Catalog rows for *song_ids*; unknown IDs are skipped."""

    @abstractmethod
    def get_follow_edges(self, user_id: str) -> FollowEdges:
        """Who the user follows and who follows the user."""

    @abstractmethod
    def get_compatibility_cache(self, key: Tuple[str, str]) -> Optional[CompatibilityEntry]:
        """Cached entry for an ordered pair key (see ``pair_key``), or None."""

    @abstractmethod
    def upsert_compatibility_cache(self, key: Tuple[str, str], entry: CompatibilityEntry) -> None:
        """Insert or overwrite the cache entry for the pair."""

    @abstractmethod
    def upsert_sentiment(self, review_id: str, annotation: SentimentAnnotation) -> None:
        """Insert or overwrite the sentiment annotation of a review."""

    def record_recommendation_metrics(self, metrics: pd.DataFrame) -> None:
        """Append served-recommendation rows. Stores without a metrics log ignore them."""
        logger.debug("%s does not persist recommendation metrics; dropped %d rows", type(self).__name__, len(metrics))


class InMemoryStore(MusicStore):
    """DataFrame-backed store holding a full snapshot in process.

    Enforces the data-model invariants on writes: one review per (user, song),
    ratings in [0.5, 5.0] at 0.5 steps, no self-follows, at most four favorite
    artists.

    Attributes:
        songs (pd.DataFrame): Catalog in insertion order.
        artists (pd.DataFrame): Artist catalog.
        reviews (pd.DataFrame): One row per (user, song) review.
        sentiment (pd.DataFrame): One row per annotated review.
        follows (pd.DataFrame): Directed follower -> following edges.
        recommendation_metrics (pd.DataFrame): Logged recommendation rows.
    """

    def __init__(
        self,
        songs: Optional[pd.DataFrame] = None,
        artists: Optional[pd.DataFrame] = None,
        reviews: Optional[pd.DataFrame] = None,
        sentiment: Optional[pd.DataFrame] = None,
        follows: Optional[pd.DataFrame] = None,
        preferences: Optional[Dict[str, PreferenceProfile]] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.clock = clock
        self.songs = self._with_columns(songs, SONG_COLUMNS)
        self.songs['popularity_30d'] = pd.to_numeric(self.songs['popularity_30d'], errors='coerce').fillna(0.0)
        self.artists = self._with_columns(artists, ARTIST_COLUMNS)
        self.reviews = self._with_columns(reviews, REVIEW_COLUMNS)
        if not self.reviews.empty:
            self.reviews['created_at'] = pd.to_datetime(self.reviews['created_at'], utc=True)
            self.reviews['updated_at'] = pd.to_datetime(
                self.reviews['updated_at'].fillna(self.reviews['created_at']), utc=True
            )
            duplicated = self.reviews.duplicated(subset=['user_id', 'song_id'], keep='last')
            if duplicated.any():
                logger.warning("Dropping %d duplicate (user, song) reviews; keeping the latest", int(duplicated.sum()))
                self.reviews = self.reviews[~duplicated].reset_index(drop=True)
        self.sentiment = self._with_columns(sentiment, SENTIMENT_COLUMNS)
        self.follows = self._with_columns(follows, ['follower_id', 'following_id'])
        if not self.follows.empty:
            self.follows = self.follows[self.follows['follower_id'] != self.follows['following_id']]
            self.follows = self.follows.drop_duplicates().reset_index(drop=True)
        self.preferences: Dict[str, PreferenceProfile] = dict(preferences or {})
        self.compatibility_cache: Dict[Tuple[str, str], CompatibilityEntry] = {}
        self.recommendation_metrics = pd.DataFrame(columns=METRIC_COLUMNS)

    @staticmethod
    def _with_columns(df: Optional[pd.DataFrame], columns: List[str]) -> pd.DataFrame:
        if df is None:
            return pd.DataFrame(columns=columns)
        df = df.copy()
        for col in columns:
            if col not in df.columns:
                df[col] = None
        return df.reset_index(drop=True)

    # ------------------------------------------------------------------ reads

    def get_preference_profile(self, user_id: str) -> PreferenceProfile:
        return self.preferences.get(user_id, PreferenceProfile())

    def get_reviews_by_user(self, user_id: str) -> pd.DataFrame:
        mine = self.reviews[self.reviews['user_id'] == user_id]
        return mine[['review_id', 'song_id', 'rating', 'created_at']].reset_index(drop=True)

    def get_reviews_by_song(self, song_id: str) -> pd.DataFrame:
        theirs = self.reviews[self.reviews['song_id'] == song_id][['review_id', 'user_id', 'rating', 'created_at']]
        return theirs.merge(self.sentiment, on='review_id', how='left').reset_index(drop=True)

    def get_reviews_since(self, since: datetime) -> pd.DataFrame:
        if self.reviews.empty:
            return self.reviews[['review_id', 'user_id', 'song_id', 'rating', 'created_at']].copy()
        recent = self.reviews[self.reviews['created_at'] >= to_utc(since)]
        return recent[['review_id', 'user_id', 'song_id', 'rating', 'created_at']].reset_index(drop=True)

    def get_candidate_songs(
        self,
        languages: Optional[Iterable[str]] = None,
        eras: Optional[Sequence[EraRange]] = None,
        cap: int = 1000,
        order_by: Optional[str] = None
    ) -> pd.DataFrame:
        candidates = self.songs
        languages = set(languages or ())
        if languages:
            candidates = candidates[candidates['language'].isin(list(languages))]
        if eras:
            years = pd.to_numeric(candidates['release_year'], errors='coerce')
            in_era = np.zeros(len(candidates), dtype=bool)
            for era in eras:
                in_era |= ((years >= era.start) & (years <= era.end)).to_numpy()
            candidates = candidates[in_era]
        if order_by is not None:
            candidates = candidates.sort_values(order_by, ascending=False, kind='mergesort')
        return candidates.head(cap).reset_index(drop=True)

    def get_songs(self, song_ids: Sequence[str]) -> pd.DataFrame:
        if not len(song_ids):
            return self.songs.iloc[0:0].copy()
        order = {song_id: idx for idx, song_id in enumerate(song_ids)}
        found = self.songs[self.songs['song_id'].isin(list(order))]
        return found.sort_values('song_id', key=lambda s: s.map(order), kind='mergesort').reset_index(drop=True)

    def get_follow_edges(self, user_id: str) -> FollowEdges:
        following = self.follows.loc[self.follows['follower_id'] == user_id, 'following_id']
        followers = self.follows.loc[self.follows['following_id'] == user_id, 'follower_id']
        return FollowEdges(frozenset(following), frozenset(followers))

    def get_compatibility_cache(self, key: Tuple[str, str]) -> Optional[CompatibilityEntry]:
        return self.compatibility_cache.get(pair_key(*key))

    # ----------------------------------------------------------------- writes

    def upsert_compatibility_cache(self, key: Tuple[str, str], entry: CompatibilityEntry) -> None:
        self.compatibility_cache[pair_key(*key)] = entry

    def upsert_sentiment(self, review_id: str, annotation: SentimentAnnotation) -> None:
        if not -1.0 <= annotation.sentiment <= 1.0:
            raise ValueError(f"Sentiment must be in [-1, 1], got {annotation.sentiment}")
        if not 0.0 <= annotation.toxicity <= 1.0:
            raise ValueError(f"Toxicity must be in [0, 1], got {annotation.toxicity}")
        row = pd.DataFrame([{
            'review_id': review_id,
            'sentiment_score': float(annotation.sentiment),
            'toxicity_score': float(annotation.toxicity),
            'emotion_tags': list(annotation.emotions),
        }])
        rest = self.sentiment[self.sentiment['review_id'] != review_id]
        self.sentiment = pd.concat([rest, row], ignore_index=True) if not rest.empty else row

    def record_recommendation_metrics(self, metrics: pd.DataFrame) -> None:
        if metrics.empty:
            return
        rows = metrics.reindex(columns=METRIC_COLUMNS)
        if self.recommendation_metrics.empty:
            self.recommendation_metrics = rows.reset_index(drop=True)
        else:
            self.recommendation_metrics = pd.concat([self.recommendation_metrics, rows], ignore_index=True)

    def add_song(
        self,
        song_id: str,
        artist_id: str,
        genre: Sequence[str],
        language: str,
        release_year: int,
        popularity_30d: float = 0.0,
        title: Optional[str] = None
    ) -> None:
        """Add a catalog entry. Songs are immutable, so re-adding an existing ID is ignored."""
        if song_id in set(self.songs['song_id']):
            logger.debug("Song %s already in catalog; ignoring", song_id)
            return
        row = pd.DataFrame([{
            'song_id': song_id,
            'artist_id': artist_id,
            'title': title or song_id,
            'genre': list(genre),
            'language': language,
            'release_year': int(release_year),
            'popularity_30d': float(popularity_30d),
        }])
        self.songs = pd.concat([self.songs, row], ignore_index=True) if not self.songs.empty else row

    def set_preferences(
        self,
        user_id: str,
        preferred_languages: Iterable[str] = (),
        preferred_eras: Iterable = (),
        favorite_artists: Sequence[str] = ()
    ) -> PreferenceProfile:
        """Overwrite the user's preference profile.

        Eras may be (start, end) pairs or {start, end} mappings.
        """
        profile = build_preference_profile(preferred_languages, preferred_eras, favorite_artists)
        self.preferences[user_id] = profile
        return profile

    @staticmethod
    def _validate_rating(rating: float) -> float:
        rating = float(rating)
        if not 0.5 <= rating <= 5.0 or (rating * 2) != int(rating * 2):
            raise ValueError(f"Rating must be in [0.5, 5.0] in steps of 0.5, got {rating}")
        return rating

    def save_review(
        self,
        user_id: str,
        song_id: str,
        rating: float,
        review_text: Optional[str] = None,
        created_at: Optional[datetime] = None
    ) -> str:
        """Create the user's review of a song, or update it if one exists.

        Returns:
            The review ID
        """
        rating = self._validate_rating(rating)
        now = to_utc(self.clock())
        mask = (self.reviews['user_id'] == user_id) & (self.reviews['song_id'] == song_id)
        if mask.any():
            idx = self.reviews.index[mask][0]
            self.reviews.at[idx, 'rating'] = rating
            self.reviews.at[idx, 'review_text'] = review_text
            self.reviews.at[idx, 'updated_at'] = now
            return self.reviews.at[idx, 'review_id']

        review_id = uuid.uuid4().hex
        created = to_utc(created_at) if created_at is not None else now
        row = pd.DataFrame([{
            'review_id': review_id,
            'user_id': user_id,
            'song_id': song_id,
            'rating': rating,
            'review_text': review_text,
            'created_at': created,
            'updated_at': created,
        }])
        self.reviews = pd.concat([self.reviews, row], ignore_index=True) if not self.reviews.empty else row
        return review_id

    def delete_review(self, review_id: str) -> bool:
        """Remove a review and its sentiment annotation. Returns False if it did not exist."""
        mask = self.reviews['review_id'] == review_id
        if not mask.any():
            return False
        self.reviews = self.reviews[~mask].reset_index(drop=True)
        self.sentiment = self.sentiment[self.sentiment['review_id'] != review_id].reset_index(drop=True)
        return True

    def follow(self, follower_id: str, following_id: str) -> None:
        if follower_id == following_id:
            raise ValueError("Users cannot follow themselves")
        exists = ((self.follows['follower_id'] == follower_id) & (self.follows['following_id'] == following_id)).any()
        if exists:
            return
        row = pd.DataFrame([{'follower_id': follower_id, 'following_id': following_id}])
        self.follows = pd.concat([self.follows, row], ignore_index=True) if not self.follows.empty else row

    def unfollow(self, follower_id: str, following_id: str) -> None:
        mask = (self.follows['follower_id'] == follower_id) & (self.follows['following_id'] == following_id)
        self.follows = self.follows[~mask].reset_index(drop=True)

