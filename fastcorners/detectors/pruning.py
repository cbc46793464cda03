"""
High-speed pre-test for the 12-of-16 FAST rule.

Any run of 12 contiguous ring pixels covers at least three of the four
compass points (up, right, down, left).  Looking at those four samples alone
therefore rejects most non-corners before the full 16-point test is run.
The test may let non-corners through, it must never reject a true corner.
"""

import numpy as np

from fastcorners.detectors.ring import Classification

DARKER = Classification.DARKER.value
BRIGHTER = Classification.BRIGHTER.value
SIMILAR = Classification.SIMILAR.value


def high_speed_test(compass_tags):
    """Decide whether a pixel may be a corner from its 4 compass neighbours.

    Parameters
    ----------
    compass_tags : array_like
        Classification codes with a trailing axis of length 4 ordered
        (up, right, down, left).  Shape ``(4,)`` for one pixel or
        ``(..., 4)`` for many.

    Returns
    -------
    bool or np.ndarray
        True where the pixel survives and must go through the full arc test.
    """
    tags = np.asarray(compass_tags)
    up, right, down, left = (tags[..., k] for k in range(4))

    up_dark, down_dark = up == DARKER, down == DARKER
    up_bright, down_bright = up == BRIGHTER, down == BRIGHTER
    right_dark, left_dark = right == DARKER, left == DARKER
    right_bright, left_bright = right == BRIGHTER, left == BRIGHTER

    # Only consulted when up and down are not both similar, both darker or
    # both brighter, so "either" means "exactly one".  A darker/brighter pair
    # of poles matches both rules.
    one_pole = (
        ((up_dark | down_dark) & right_dark & left_dark)
        | ((up_bright | down_bright) & right_bright & left_bright)
    )

    survives = np.select(
        [
            (up == SIMILAR) & (down == SIMILAR),
            up_dark & down_dark,
            up_bright & down_bright,
        ],
        [
            False,
            right_dark | left_dark,
            right_bright | left_bright,
        ],
        default=one_pole,
    ).astype(bool)

    if survives.ndim == 0:
        return bool(survives)
    return survives
