"""Maximal-marginal-relevance selection over merged search hits."""
import logging
from typing import List
import numpy as np

from models.chunk import Hit

logger = logging.getLogger(__name__)


def pick_diverse(
    hits: List[Hit],
    k: int = 6,
    mmr_lambda: float = 0.8,
    min_keep: float = 0.1
) -> List[Hit]:
    """
    Greedily pick up to k hits, penalizing near-duplicates of earlier picks.

    Hits must already be sorted by descending relevance. Each candidate is
    scored once:

        mmr = mmr_lambda * score - (1 - mmr_lambda) * max_sim_to_picked

    The first candidate is always taken; later ones only when mmr > min_keep.
    A rejected candidate is not revisited.

    Args:
        hits: Relevance-sorted hits
        k: Maximum number of picks
        mmr_lambda: 1.0 is pure relevance, 0.0 pure diversity
        min_keep: Acceptance threshold on the MMR score

    Returns:
        Selected hits in pick order

    Raises:
        ValueError: If mmr_lambda is outside [0, 1]
    """
    if not 0.0 <= mmr_lambda <= 1.0:
        raise ValueError("mmr_lambda must be within [0, 1]")
    if k <= 0:
        return []

    picked: List[Hit] = []
    picked_ids = set()
    picked_embeddings: List[np.ndarray] = []

    for hit in hits:
        if len(picked) >= k:
            break
        if hit.item.id in picked_ids:
            continue

        # Unit vectors: cosine similarity is the dot product
        max_sim = 0.0
        if picked_embeddings:
            max_sim = max(0.0, float(np.max(np.vstack(picked_embeddings) @ hit.item.embedding_unit)))

        mmr_score = mmr_lambda * hit.score - (1 - mmr_lambda) * max_sim

        if not picked or mmr_score > min_keep:
            picked.append(hit)
            picked_ids.add(hit.item.id)
            picked_embeddings.append(hit.item.embedding_unit)
        else:
            logger.debug(f"Rejected {hit.item.id}: mmr={mmr_score:.3f}, max_sim={max_sim:.3f}")

    return picked
