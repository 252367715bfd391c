"""Loader for song-related data in the music recommendation system."""

import os
import pandas as pd
import logging
from typing import Optional

from Soundcircle.recommendation.models import SONG_COLUMNS

logger = logging.getLogger(__name__)

LIST_SEPARATOR = "|"


def split_list_cell(value) -> list:
    """Split a '|'-separated CSV cell into a list; blanks and NaN become []."""
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return []
    return [part.strip() for part in str(value).split(LIST_SEPARATOR) if part.strip()]


class SongLoader:
    """Loader for the song catalog and artist records."""

    def __init__(self, data_dir: str):
        """Initialize the song loader.

        Args:
            data_dir: Directory containing songs.csv and, optionally, artists.csv

        Raises:
            FileNotFoundError: If data_dir does not exist
        """
        if not os.path.exists(data_dir):
            raise FileNotFoundError(f"Data directory {data_dir} does not exist")
        self.data_dir = data_dir
        self.songs: Optional[pd.DataFrame] = None
        self.artists: Optional[pd.DataFrame] = None

    def load_songs(self) -> pd.DataFrame:
        """Load the song catalog.

        Returns:
            DataFrame with the catalog columns; 'genre' holds lists

        Raises:
            FileNotFoundError: If songs.csv is missing
            ValueError: If required columns are missing
        """
        if self.songs is not None:
            logger.info("Returning cached songs")
            return self.songs

        songs_path = os.path.join(self.data_dir, "songs.csv")
        if not os.path.exists(songs_path):
            raise FileNotFoundError(f"No song catalog found at {songs_path}")

        logger.info("Loading songs from %s", songs_path)
        songs = pd.read_csv(songs_path, dtype={'song_id': str, 'artist_id': str})
        required = ['song_id', 'artist_id', 'language', 'release_year']
        missing = [col for col in required if col not in songs.columns]
        if missing:
            raise ValueError(f"Missing required columns in songs.csv: {missing}")

        if 'title' not in songs.columns:
            songs['title'] = songs['song_id']
        if 'popularity_30d' not in songs.columns:
            logger.warning("No popularity_30d column; defaulting to 0")
            songs['popularity_30d'] = 0.0
        songs['genre'] = songs['genre'].map(split_list_cell) if 'genre' in songs.columns else [[] for _ in range(len(songs))]
        songs['release_year'] = pd.to_numeric(songs['release_year'], errors='coerce')
        songs['popularity_30d'] = pd.to_numeric(songs['popularity_30d'], errors='coerce').fillna(0.0)

        before = len(songs)
        songs = songs.drop_duplicates(subset='song_id', keep='first')
        if len(songs) < before:
            logger.warning("Dropped %d duplicate song IDs", before - len(songs))

        self.songs = songs[SONG_COLUMNS].reset_index(drop=True)
        logger.info("Songs loaded with columns: %s", list(self.songs.columns))
        return self.songs

    def load_artists(self) -> pd.DataFrame:
        """Load artist records, or an empty DataFrame if artists.csv is absent."""
        if self.artists is not None:
            logger.info("Returning cached artists")
            return self.artists

        artists_path = os.path.join(self.data_dir, "artists.csv")
        if not os.path.exists(artists_path):
            logger.warning("No artist file found at %s; returning empty DataFrame", artists_path)
            self.artists = pd.DataFrame()
            return self.artists

        logger.info("Loading artists from %s", artists_path)
        artists = pd.read_csv(artists_path, dtype={'artist_id': str})
        # Allow 'artist_name' or 'artist' for the display name
        name_col = next((col for col in ['name', 'artist_name', 'artist'] if col in artists.columns), None)
        if name_col and name_col != 'name':
            logger.info("Renaming artist name column from '%s' to 'name'", name_col)
            artists = artists.rename(columns={name_col: 'name'})
        self.artists = artists
        return self.artists
