"""
Exceptions raised by the FAST detector.

Every failure of the detector is structural: either the configuration is out
of range or the image cannot hold a single valid pixel.  Per-pixel evaluation
never raises.
"""


class FastError(Exception):
    """Base class for all detector errors."""


class InvalidParameter(FastError, ValueError):
    """A configuration value (or a queried pixel) is outside its valid range."""


class ImageTooSmall(FastError, ValueError):
    """The image is narrower or shorter than the 7 pixels a ring needs."""

    def __init__(self, width: int, height: int, minimum: int):
        super().__init__(
            f"image is {width}x{height}, FAST needs at least "
            f"{minimum}x{minimum} pixels"
        )
        self.width = width
        self.height = height
        self.minimum = minimum


class InvalidImage(FastError, TypeError):
    """The input is not a single-channel grid of integer intensities."""
