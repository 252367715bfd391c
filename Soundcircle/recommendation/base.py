"""Abstract base class for the store-backed recommenders."""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

import pandas as pd

from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.models import SONG_COLUMNS
from Soundcircle.recommendation.store import MusicStore
from Soundcircle.recommendation.utils.decay import utc_now

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


def fetch_concurrently(fetch: Callable[[K], V], keys: Iterable[K], max_workers: int = 8) -> Dict[K, V]:
    """Run independent read-only lookups, in parallel when ``max_workers`` > 1.

    Results are keyed by input, so completion order does not matter. The first
    failure is re-raised once all lookups have been issued.
    """
    keys = list(dict.fromkeys(keys))
    if max_workers <= 1 or len(keys) <= 1:
        return {key: fetch(key) for key in keys}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(keys))) as pool:
        return dict(zip(keys, pool.map(fetch, keys)))


class RecommenderBase(ABC):
    """Base class defining the interface for the recommendation strategies.

    Attributes:
        name (str): Identifier for the recommender, written to the output 'mode' column.
        store (MusicStore): Source of profiles, ratings, reviews and catalog data.
        config (EngineConfig): Weights and constants.
        clock (Callable[[], datetime]): Reference time for recency decay.
    """

    output_columns: List[str] = ['user_id'] + SONG_COLUMNS + ['score', 'mode']

    def __init__(
        self,
        store: MusicStore,
        config: Optional[EngineConfig] = None,
        name: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """Initialize the recommender.

        Args:
            store: Store implementation to read from
            config: Engine configuration; defaults are used if not provided
            name: Optional identifier. Defaults to class name if not provided.
            clock: Callable returning the current time
        """
        self.store = store
        self.config = config or EngineConfig()
        self.name = name or self.__class__.__name__
        self.clock = clock

    @abstractmethod
    def recommend(self, user_id: str, n: int = 20, **kwargs) -> pd.DataFrame:
        """Generate ranked song recommendations for the target user.

        Args:
            user_id: Target user identifier
            n: Maximum number of recommendations to return

        Returns:
            DataFrame in rank order containing at least:
                - user_id: User identifier
                - song_id: Recommended song ID
                - score: Recommendation score
                - mode: Name of the strategy that produced the row

        Raises:
            ValueError: If n is not positive
        """
        self._check_limit(n)

    @staticmethod
    def _check_limit(n: int) -> None:
        if n <= 0:
            raise ValueError(f"Number of recommendations must be positive, got {n}")

    def _empty_frame(self) -> pd.DataFrame:
        return pd.DataFrame(columns=self.output_columns)
