"""
Bresenham ring of radius 3 and per-neighbour intensity classification.

Every FAST decision is made on the 16 pixels of a discretised circle around
the candidate.  Offsets are listed clockwise starting straight above the
centre, so consecutive entries are neighbours on the circle and entries
0, 4, 8 and 12 are the compass points (up, right, down, left) used by the
high-speed test.
"""

from enum import IntEnum

import numpy as np

# Pixels a candidate must keep between itself and every image border
MARGIN = 3
RING_SIZE = 16

# (dx, dy) relative to the centre; y grows downwards
RING_OFFSETS = (
    (0, -3),
    (1, -3),
    (2, -2),
    (3, -1),
    (3, 0),
    (3, 1),
    (2, 2),
    (1, 3),
    (0, 3),
    (-1, 3),
    (-2, 2),
    (-3, 1),
    (-3, 0),
    (-3, -1),
    (-2, -2),
    (-1, -3),
)

# up, right, down, left
COMPASS_INDICES = (0, 4, 8, 12)
COMPASS_OFFSETS = tuple(RING_OFFSETS[i] for i in COMPASS_INDICES)


class Classification(IntEnum):
    """How a ring pixel compares to the centre pixel."""

    SIMILAR = 0
    DARKER = 1
    BRIGHTER = 2


def classify(center, neighbor, threshold):
    """Classify neighbour intensities against a centre intensity.

    Accepts scalars or broadcastable arrays.  All operands are widened to
    ``int32`` first, so sums and differences of 8-bit values cannot wrap.

    Parameters
    ----------
    center : int or np.ndarray
        Intensity of the centre pixel(s).
    neighbor : int or np.ndarray
        Intensity of the neighbouring pixel(s).
    threshold : int or np.ndarray
        Minimum intensity delta for a neighbour to be brighter or darker.

    Returns
    -------
    Classification or np.ndarray
        A :class:`Classification` for scalar input, otherwise an ``int8``
        array of classification codes with the broadcast shape.
    """
    c = np.asarray(center, dtype=np.int32)
    n = np.asarray(neighbor, dtype=np.int32)
    t = np.asarray(threshold, dtype=np.int32)

    tags = np.select(
        [n + t < c, n - t > c],
        [Classification.DARKER.value, Classification.BRIGHTER.value],
        default=Classification.SIMILAR.value,
    ).astype(np.int8)

    if tags.ndim == 0:
        return Classification(int(tags))
    return tags


def ring_values(pixels: np.ndarray, xs, ys, offsets=RING_OFFSETS) -> np.ndarray:
    """Gather the ring samples around one or many centre pixels.

    Parameters
    ----------
    pixels : np.ndarray
        H x W intensity image.
    xs, ys : int or np.ndarray
        Column and row of the centre pixel(s); every centre must keep a
        3-pixel margin to the border.
    offsets : sequence of (dx, dy)
        Ring positions to sample, defaults to the full 16-point ring.

    Returns
    -------
    np.ndarray
        Array of shape ``xs.shape + (len(offsets),)``.
    """
    xs = np.asarray(xs)
    ys = np.asarray(ys)
    return np.stack([pixels[ys + dy, xs + dx] for dx, dy in offsets], axis=-1)


def ring_support(height: int, width: int) -> np.ndarray:
    """Mask of the pixels a full scan reads: valid centres and their rings."""
    support = np.zeros((height, width), dtype=bool)
    for dx, dy in ((0, 0),) + RING_OFFSETS:
        support[MARGIN + dy:height - MARGIN + dy, MARGIN + dx:width - MARGIN + dx] = True
    return support
