"""
Corner strength for ranking adjacent detections.

Eq. 8 of Rosten & Drummond, "Machine learning for high-speed corner
detection": the larger of the summed excess intensity differences of the
darker and of the brighter ring pixels.
"""

import numpy as np

from fastcorners.detectors.ring import Classification, classify


def corner_score(center, ring, threshold: int):
    """Score one or many pixels already confirmed as corners.

    Parameters
    ----------
    center : int or np.ndarray
        Centre intensity, scalar or shape ``(N,)``.
    ring : np.ndarray
        Ring intensities, shape ``(16,)`` or ``(N, 16)``.
    threshold : int
        The detector threshold.

    Returns
    -------
    int or np.ndarray
        ``max(sum_dark, sum_bright)`` where each sum adds
        ``|neighbour - centre| - threshold`` over the pixels of that class.
    """
    c = np.asarray(center, dtype=np.int32)[..., np.newaxis]
    n = np.asarray(ring, dtype=np.int32)

    tags = classify(c, n, threshold)
    excess = np.abs(n - c) - threshold

    sum_dark = np.where(tags == Classification.DARKER, excess, 0).sum(axis=-1)
    sum_bright = np.where(tags == Classification.BRIGHTER, excess, 0).sum(axis=-1)
    score = np.maximum(sum_dark, sum_bright)

    if score.ndim == 0:
        return int(score)
    return score
