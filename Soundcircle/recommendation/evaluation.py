"""Recommendation metrics logging and per-version (A/B) summaries."""

from typing import Optional
import logging

import pandas as pd

from Soundcircle.recommendation.models import COMPONENT_COLUMNS, COMPONENT_NAMES
from Soundcircle.recommendation.store import METRIC_COLUMNS
from Soundcircle.recommendation.utils.decay import to_utc

logger = logging.getLogger(__name__)

INTERACTION_TYPES = ('rated', 'skipped', 'ignored')


class RecommendationEvaluator:
    """Builds metric rows for served recommendations and compares weight sets."""

    def build_metric_rows(self, recommendations: pd.DataFrame, algorithm_version: str, now) -> pd.DataFrame:
        """One metric row per served hybrid recommendation.

        Args:
            recommendations: Hybrid output with 'user_id', 'song_id', 'score' and '<component>_score' columns
            algorithm_version: Label of the weight set that produced the rows
            now: Time the recommendations were served

        Returns:
            DataFrame with the metric log columns
        """
        if recommendations.empty:
            return pd.DataFrame(columns=METRIC_COLUMNS)

        present = {col: name for col, name in zip(COMPONENT_COLUMNS, COMPONENT_NAMES) if col in recommendations.columns}
        components = recommendations[list(present)].rename(columns=present).to_dict('records')
        rows = pd.DataFrame({
            'user_id': recommendations['user_id'].values,
            'song_id': recommendations['song_id'].values,
            'algorithm_version': algorithm_version,
            'score': recommendations['score'].astype(float).values,
            'score_components': components,
            'was_interacted': False,
            'interaction_type': None,
            'created_at': to_utc(now),
        })
        return rows[METRIC_COLUMNS]

    def mark_interaction(
        self,
        metrics: pd.DataFrame,
        user_id: str,
        song_id: str,
        interaction_type: str
    ) -> pd.DataFrame:
        """Record how the user reacted to a served recommendation.

        Raises:
            ValueError: If interaction_type is not one of 'rated', 'skipped', 'ignored'
        """
        if interaction_type not in INTERACTION_TYPES:
            raise ValueError(f"Unknown interaction type: {interaction_type}. Choose from {list(INTERACTION_TYPES)}")
        metrics = metrics.copy()
        mask = (metrics['user_id'] == user_id) & (metrics['song_id'] == song_id)
        if not mask.any():
            logger.warning("No served recommendation of song %s to user %s to mark", song_id, user_id)
            return metrics
        metrics.loc[mask, 'was_interacted'] = interaction_type == 'rated'
        metrics.loc[mask, 'interaction_type'] = interaction_type
        return metrics

    def summarize(self, metrics: Optional[pd.DataFrame]) -> pd.DataFrame:
        """Per algorithm version: rows served, mean score, interaction rate and interaction type counts."""
        columns = ['served', 'mean_score', 'interaction_rate'] + list(INTERACTION_TYPES)
        if metrics is None or metrics.empty:
            return pd.DataFrame(columns=columns)

        metrics = metrics.copy()
        metrics['was_interacted'] = metrics['was_interacted'].fillna(False).astype(bool)
        grouped = metrics.groupby('algorithm_version')
        summary = pd.DataFrame({
            'served': grouped.size(),
            'mean_score': grouped['score'].mean(),
            'interaction_rate': grouped['was_interacted'].mean(),
        })
        for interaction in INTERACTION_TYPES:
            summary[interaction] = (
                (metrics['interaction_type'] == interaction).groupby(metrics['algorithm_version']).sum().astype(int)
            )
        logger.info("Summarized %d metric rows across %d algorithm versions", len(metrics), len(summary))
        return summary[columns]
