"""Per-reviewer influence multipliers derived from the follow graph and taste similarity."""

from typing import Callable, Dict, Iterable, Optional
import logging

from Soundcircle.recommendation.config import EngineConfig
from Soundcircle.recommendation.models import FollowEdges, pair_key
from Soundcircle.recommendation.store import MusicStore

logger = logging.getLogger(__name__)


def social_weight(
    is_following: bool,
    is_follower: bool,
    similarity: Optional[float],
    config: EngineConfig
) -> float:
    """Weight of a reviewer's opinion as seen by the viewer.

    Mutual follows get the mutual weight, a one-way follow by the viewer the
    following weight, everyone else the base weight. A taste similarity above
    the threshold adds the bonus on top of whichever applies.
    """
    if is_following and is_follower:
        weight = config.mutual_follow_weight
    elif is_following:
        weight = config.following_weight
    else:
        weight = config.base_social_weight

    if similarity is not None and similarity > config.similarity_bonus_threshold:
        weight += config.similarity_bonus

    if config.social_weight_cap is not None:
        weight = min(weight, config.social_weight_cap)
    return weight


class SocialWeightCalculator:
    """Looks up follow edges and cached compatibility to weight reviewers."""

    def __init__(
        self,
        store: MusicStore,
        config: Optional[EngineConfig] = None,
        similarity_lookup: Optional[Callable[[str, str], Optional[float]]] = None
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.similarity_lookup = similarity_lookup or self._cached_similarity

    def _cached_similarity(self, viewer_id: str, reviewer_id: str) -> Optional[float]:
        # Any cached score counts, fresh or not; compatibility is never computed here.
        entry = self.store.get_compatibility_cache(pair_key(viewer_id, reviewer_id))
        return None if entry is None else entry.score

    def weights_for(
        self,
        viewer_id: str,
        reviewer_ids: Iterable[str],
        edges: Optional[FollowEdges] = None
    ) -> Dict[str, float]:
        """Return {reviewer_id: weight} for every reviewer.

        Args:
            viewer_id: The user the community score is computed for
            reviewer_ids: Authors of the reviews being aggregated
            edges: The viewer's follow edges, fetched when not supplied
        """
        if edges is None:
            edges = self.store.get_follow_edges(viewer_id)

        weights = {}
        for reviewer_id in reviewer_ids:
            if reviewer_id in weights:
                continue
            if reviewer_id == viewer_id:
                weights[reviewer_id] = self.config.base_social_weight
                continue
            weights[reviewer_id] = social_weight(
                reviewer_id in edges.following,
                reviewer_id in edges.followers,
                self.similarity_lookup(viewer_id, reviewer_id),
                self.config
            )
        return weights
