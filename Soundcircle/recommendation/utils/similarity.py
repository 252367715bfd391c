"""Similarity computation utilities shared by CF scoring and taste compatibility."""

from typing import Collection, Dict, Mapping
import numpy as np
from scipy.sparse import csr_matrix
from sklearn.metrics.pairwise import cosine_similarity as sk_cosine_similarity
import logging

logger = logging.getLogger(__name__)


def raw_cosine_similarity(ratings_a: Mapping[str, float], ratings_b: Mapping[str, float]) -> float:
    """Cosine similarity of two sparse rating vectors over their co-rated items.

    Args:
        ratings_a: Mapping of item ID to rating for the first user
        ratings_b: Mapping of item ID to rating for the second user

    Returns:
        Cosine in [-1, 1]; 0.0 when the users share no item or a vector has zero magnitude
    """
    common = [item_id for item_id in ratings_a if item_id in ratings_b]
    if not common:
        return 0.0

    vector_a = np.array([ratings_a[item_id] for item_id in common], dtype=float).reshape(1, -1)
    vector_b = np.array([ratings_b[item_id] for item_id in common], dtype=float).reshape(1, -1)
    if not np.any(vector_a) or not np.any(vector_b):
        return 0.0
    return float(sk_cosine_similarity(vector_a, vector_b)[0, 0])


def cosine_similarity(ratings_a: Mapping[str, float], ratings_b: Mapping[str, float]) -> float:
    """Effective similarity: cosine clamped to [0, 1].

    Negative cosine carries no evidence and is mapped to 0.
    """
    return min(1.0, max(0.0, raw_cosine_similarity(ratings_a, ratings_b)))


def neighbor_similarities(
    target_ratings: Mapping[str, float],
    neighbor_ratings: Mapping[str, Mapping[str, float]]
) -> Dict[str, float]:
    """Compute the effective similarity between a target user and many neighbours in one pass.

    Builds a sparse neighbour x item matrix restricted to the target's rated
    items. For each neighbour, the target's norm is taken only over the items
    that neighbour also rated, which matches ``cosine_similarity`` pairwise.

    Args:
        target_ratings: Mapping of item ID to rating for the target user
        neighbor_ratings: Mapping of neighbour ID to that neighbour's ratings

    Returns:
        Dictionary of {neighbour_id: similarity in [0, 1]}
    """
    neighbor_ids = list(neighbor_ratings)
    if not neighbor_ids:
        return {}
    if not target_ratings:
        return {uid: 0.0 for uid in neighbor_ids}

    item_ids = list(target_ratings)
    item_index = {item_id: idx for idx, item_id in enumerate(item_ids)}

    rows, cols, data = [], [], []
    for row, uid in enumerate(neighbor_ids):
        for item_id, rating in neighbor_ratings[uid].items():
            col = item_index.get(item_id)
            if col is not None:
                rows.append(row)
                cols.append(col)
                data.append(float(rating))

    matrix = csr_matrix((data, (rows, cols)), shape=(len(neighbor_ids), len(item_ids)))
    mask = matrix.copy()
    mask.data = np.ones_like(mask.data)

    target = np.array([target_ratings[item_id] for item_id in item_ids], dtype=float)
    dot = np.asarray(matrix @ target).ravel()
    neighbor_norm = np.sqrt(np.asarray(matrix.multiply(matrix).sum(axis=1)).ravel())
    target_norm = np.sqrt(np.asarray(mask @ (target ** 2)).ravel())

    denominator = neighbor_norm * target_norm
    similarities = np.zeros(len(neighbor_ids))
    valid = denominator > 0
    similarities[valid] = dot[valid] / denominator[valid]
    similarities = np.clip(similarities, 0.0, 1.0)

    logger.debug("Computed similarities for %d neighbours over %d items", len(neighbor_ids), len(item_ids))
    return {uid: float(sim) for uid, sim in zip(neighbor_ids, similarities)}


def jaccard_similarity(set_a: Collection, set_b: Collection) -> float:
    """|A n B| / |A u B|, or 0.0 when either set is empty."""
    a, b = set(set_a), set(set_b)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)
