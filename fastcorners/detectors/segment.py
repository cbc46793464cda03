"""
Accelerated segment test over the full 16-pixel ring.

A pixel is a corner when at least ``arc_length`` contiguous ring pixels are
all darker or all brighter than it.  The ring is circular: the first
``arc_length - 1`` classifications are appended to the end of the sequence
so that every run, including the ones wrapping past position 16, shows up as
a plain window of the extended sequence.
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from fastcorners.detectors.ring import RING_SIZE, Classification


def extend_ring(tags, arc_length: int) -> np.ndarray:
    """Append the first ``arc_length - 1`` ring entries to the ring's end."""
    tags = np.asarray(tags)
    return np.concatenate([tags, tags[..., :arc_length - 1]], axis=-1)


def segment_test(tags, arc_length: int):
    """Check ring classifications for a long enough uniform arc.

    Parameters
    ----------
    tags : array_like
        Classification codes with a trailing ring axis of length 16, shape
        ``(16,)`` for one pixel or ``(..., 16)`` for many.
    arc_length : int
        Minimum run length, 1..16.

    Returns
    -------
    bool or np.ndarray
        True where some window of ``arc_length`` consecutive ring positions
        is entirely darker or entirely brighter.
    """
    tags = np.asarray(tags)
    extended = extend_ring(tags, arc_length)

    is_corner = np.zeros(tags.shape[:-1], dtype=bool)
    for cls in (Classification.DARKER, Classification.BRIGHTER):
        # One window per starting position on the original ring
        windows = sliding_window_view(extended == cls.value, arc_length, axis=-1)
        is_corner |= windows[..., :RING_SIZE, :].all(axis=-1).any(axis=-1)

    if is_corner.ndim == 0:
        return bool(is_corner)
    return is_corner
