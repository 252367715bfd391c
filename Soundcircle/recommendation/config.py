"""Engine configuration: scoring weights and tunable constants."""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_HYBRID_WEIGHTS = {
    'genre': 0.25,
    'cf': 0.30,
    'community': 0.20,
    'artist': 0.10,
    'language': 0.10,
    'era': 0.05,
}

DEFAULT_COMPATIBILITY_WEIGHTS = {
    'cf': 0.35,
    'genre': 0.25,
    'artist': 0.15,
    'language': 0.15,
    'era': 0.10,
}


class EngineConfig:
    """Weights and constants used by every scoring component.

    Passed explicitly into the engine so weight sets can be swapped for
    experiments (e.g. A/B tests) without touching scoring code.

    Attributes:
        hybrid_weights (Dict[str, float]): Weights of the six hybrid components.
        compatibility_weights (Dict[str, float]): Weights of the five compatibility components.
        algorithm_version (str): Label written to recommendation metrics.
    """

    def __init__(
        self,
        hybrid_weights: Optional[Dict[str, float]] = None,
        compatibility_weights: Optional[Dict[str, float]] = None,
        algorithm_version: str = "hybrid-v1",
        cold_start_threshold: int = 5,
        candidate_cap: int = 1000,
        cache_ttl_seconds: float = 3600.0,
        community_decay_rate: float = 0.1,
        sentiment_theta: float = 0.2,
        toxicity_threshold: float = 0.5,
        trending_window_days: float = 7.0,
        trending_decay_rate: float = 0.2,
        base_social_weight: float = 1.0,
        following_weight: float = 1.2,
        mutual_follow_weight: float = 1.5,
        similarity_bonus: float = 0.3,
        similarity_bonus_threshold: float = 0.7,
        social_weight_cap: Optional[float] = None,
        high_rating_threshold: float = 4.0,
        era_gap_years: float = 100.0,
        cold_start_artist_bonus: float = 1.0,
        cold_start_language_bonus: float = 0.5,
        max_workers: int = 8,
    ):
        self.hybrid_weights = self._merge_weights(DEFAULT_HYBRID_WEIGHTS, hybrid_weights, "hybrid")
        self.compatibility_weights = self._merge_weights(
            DEFAULT_COMPATIBILITY_WEIGHTS, compatibility_weights, "compatibility"
        )
        self.algorithm_version = algorithm_version
        self.cold_start_threshold = int(cold_start_threshold)
        self.candidate_cap = int(candidate_cap)
        self.cache_ttl_seconds = float(cache_ttl_seconds)
        self.community_decay_rate = float(community_decay_rate)
        self.sentiment_theta = float(sentiment_theta)
        self.toxicity_threshold = float(toxicity_threshold)
        self.trending_window_days = float(trending_window_days)
        self.trending_decay_rate = float(trending_decay_rate)
        self.base_social_weight = float(base_social_weight)
        self.following_weight = float(following_weight)
        self.mutual_follow_weight = float(mutual_follow_weight)
        self.similarity_bonus = float(similarity_bonus)
        self.similarity_bonus_threshold = float(similarity_bonus_threshold)
        self.social_weight_cap = None if social_weight_cap is None else float(social_weight_cap)
        self.high_rating_threshold = float(high_rating_threshold)
        self.era_gap_years = float(era_gap_years)
        self.cold_start_artist_bonus = float(cold_start_artist_bonus)
        self.cold_start_language_bonus = float(cold_start_language_bonus)
        self.max_workers = max(1, int(max_workers))

        if self.cold_start_threshold < 0:
            raise ValueError("cold_start_threshold must be non-negative")
        if self.candidate_cap <= 0:
            raise ValueError("candidate_cap must be positive")
        if self.era_gap_years <= 0:
            raise ValueError("era_gap_years must be positive")

    @staticmethod
    def _merge_weights(defaults: Dict[str, float], overrides: Optional[Dict[str, float]], label: str) -> Dict[str, float]:
        weights = dict(defaults)
        if overrides:
            unknown = set(overrides) - set(defaults)
            if unknown:
                raise ValueError(f"Unknown {label} weight(s): {', '.join(sorted(unknown))}")
            weights.update({k: float(v) for k, v in overrides.items()})

        negative = [k for k, v in weights.items() if v < 0]
        if negative:
            raise ValueError(f"Negative {label} weight(s): {', '.join(sorted(negative))}")

        total = sum(weights.values())
        if abs(total - 1.0) > 1e-6:
            logger.warning("%s weights sum to %.3f rather than 1.0; final scores are clamped to [0, 1]", label.capitalize(), total)
        return weights

    @classmethod
    def from_dict(cls, cfg: Optional[Dict]) -> "EngineConfig":
        """Build a config from a plain dictionary (as read by ``load_config``)."""
        cfg = dict(cfg or {})
        return cls(**cfg)

    def to_dict(self) -> Dict:
        return dict(vars(self))

    def __repr__(self) -> str:
        return f"EngineConfig(version={self.algorithm_version!r}, hybrid={self.hybrid_weights}, compatibility={self.compatibility_weights})"
