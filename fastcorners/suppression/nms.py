"""
Non-maximal suppression (NMS) for FAST detections.

FAST fires on several touching pixels around one physical corner.  Pairs of
detections that are 8-connected (Chebyshev distance <= 1) are compared by
corner score and the weaker one is dropped, reducing each cluster to
isolated points.
"""

import logging

import numpy as np
from scipy.spatial.distance import cdist

logger = logging.getLogger(__name__)


def adjacent_indices(coords: np.ndarray, i: int) -> np.ndarray:
    """Indices ``j > i`` of the points within Chebyshev distance 1 of point *i*."""
    dist = cdist(coords[i:i + 1], coords[i + 1:], metric="chebyshev")[0]
    return np.flatnonzero(dist <= 1) + i + 1


def non_maximal_suppression(features, scores) -> list:
    """Drop the weaker member of every adjacent pair of detections.

    Pairs are visited in list order, ``(i, j)`` with ``i < j``.  The lower
    scoring feature of a pair is marked; on an exact tie the later one (*j*)
    is marked.  A marked feature no longer acts as the first member of a
    pair, but later features are still compared against it.  Once every pair
    has been visited the marked features are removed.

    Survivors are never adjacent to each other.  Which member of a cluster of
    equal scores survives depends on list order.

    Parameters
    ----------
    features : sequence of (x, y)
        Detections in scan order.
    scores : array_like
        Corner score of every feature, same length as *features*.

    Returns
    -------
    list
        The surviving features, in their original relative order.
    """
    n = len(features)
    if n < 2:
        return list(features)
    if len(scores) != n:
        raise ValueError(f"got {len(scores)} scores for {n} features")

    coords = np.asarray(features, dtype=np.int64).reshape(n, 2)
    scores = np.asarray(scores)
    removed = np.zeros(n, dtype=bool)

    for i in range(n - 1):
        if removed[i]:
            continue

        for j in adjacent_indices(coords, i):
            # keep the feature with the highest score, ties go to the earlier one
            if scores[i] < scores[j]:
                removed[i] = True
                break
            removed[j] = True

    logger.debug("NMS kept %d of %d features", n - int(removed.sum()), n)
    return [feat for feat, drop in zip(features, removed) if not drop]
